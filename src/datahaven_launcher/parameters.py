"""
Runtime parameters file

Collects runtime parameters during a launch and writes them to the JSON file
read by the parameter-setting script.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from datahaven_launcher.exceptions import ParametersFileError

logger = logging.getLogger(__name__)

PARAMETERS_TEMPLATE_PATH = Path("configs/parameters/datahaven-parameters.json")
PARAMETERS_OUTPUT_PATH = Path("tmp/configs/datahaven-parameters.json")


class RuntimeParameter(BaseModel):
    """One runtime parameter as stored in the JSON file"""

    name: str
    value: Optional[str] = None


def load_parameters_file(path: Path) -> list[RuntimeParameter]:
    """Load a JSON array of parameters

    Raises:
        ParametersFileError: If the file is missing or not a list of {name, value} objects
    """
    if not path.exists():
        raise ParametersFileError(f"Parameters file {path} does not exist")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ParametersFileError(f"Parameters file {path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ParametersFileError(f"Parameters file {path} must contain a JSON array")

    try:
        return [RuntimeParameter.model_validate(item) for item in data]
    except ValidationError as e:
        raise ParametersFileError(f"Invalid parameter in {path}: {e}") from e


class ParameterCollection:
    """Ordered set of runtime parameters, unique by name"""

    def __init__(self, parameters: Optional[list[RuntimeParameter]] = None):
        self._parameters: list[RuntimeParameter] = []
        for param in parameters or []:
            self.add_parameter(param)

    @classmethod
    def from_template(cls, template_path: Path = PARAMETERS_TEMPLATE_PATH) -> "ParameterCollection":
        """Create a collection pre-loaded with the template, if it exists"""
        if not template_path.exists():
            logger.debug(f"No parameters template at {template_path}")
            return cls()
        return cls(load_parameters_file(template_path))

    def add_parameter(self, param: RuntimeParameter) -> None:
        """Add a parameter, replacing any parameter with the same name"""
        for index, existing in enumerate(self._parameters):
            if existing.name == param.name:
                self._parameters[index] = param
                logger.debug(f"Updated parameter: {param.name} = {param.value!r}")
                return
        self._parameters.append(param)
        logger.debug(f"Added parameter: {param.name} = {param.value!r}")

    def get_parameters(self) -> list[RuntimeParameter]:
        return list(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def generate_parameters_file(self, output_path: Path = PARAMETERS_OUTPUT_PATH) -> Path:
        """
        Write the collected parameters as a JSON array.

        Args:
            output_path: Destination file; parent directories are created

        Returns:
            Path of the written file

        Raises:
            ParametersFileError: If the file cannot be written
        """
        content = [param.model_dump() for param in self._parameters]
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json.dumps(content, indent=2) + "\n")
        except OSError as e:
            raise ParametersFileError(f"Cannot write parameters file {output_path}: {e}") from e
        logger.info(f"Parameters file generated at {output_path} ({len(content)} parameters)")
        return output_path
