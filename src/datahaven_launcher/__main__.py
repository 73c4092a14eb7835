from datahaven_launcher.cli import run

run()
