from pathlib import Path
from typing import Any, Dict, List, Type, Union

from jsonschema import Draft202012Validator, SchemaError
from pydantic import BaseModel

from cascadetm.logs import get_logger
from .io import load_yaml_file

log = get_logger("data.validate")

def schema_filename(model_type: Type[BaseModel]) -> str:
    """The data file a workspace model is stored in, e.g. 'projects.yml'."""
    private = model_type.__private_attributes__['_schema_filename']
    return f"{private.default}.yml"

def model_schema(model_type: Type[BaseModel]) -> Dict[str, Any]:
    """
    JSON schema for a workspace model, as generated by pydantic.

    The schema describes the serialized (JSON mode) form, which is the form
    written to disk.
    """
    schema = model_type.model_json_schema(mode='serialization')
    schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    return schema

def schema_errors(data: Any, model_type: Type[BaseModel]) -> List[str]:
    """
    Validate raw data against a model's schema.

    Returns:
        A list of readable error messages, empty when the data is valid.
    """
    schema = model_schema(model_type)
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as e:
        log.error(f"Schema for {model_type.__name__} is invalid. Error: {e.message}")
        return [f"invalid schema: {e.message}"]

    validator = Draft202012Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
        location = "/".join(str(p) for p in error.absolute_path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors

def validate_file_schema(file_path: Union[Path, str], model_type: Type[BaseModel]) -> bool:
    """
    Validates a YAML data file against the schema of the model stored in it.

    Args:
        file_path: The full path to the YAML file to validate.
        model_type: The workspace model the file holds.

    Returns:
        True if the file is valid or absent, False otherwise.
    """
    data = load_yaml_file(file_path)
    if data is None:
        log.debug(f"File not found, nothing to validate: {file_path}")
        return True

    errors = schema_errors(data, model_type)
    if errors:
        log.error(f"File '{file_path}' FAILED validation against {model_type.__name__}.")
        for message in errors:
            log.error(f"Validation Error: {message}")
        return False

    log.info(f"File '{file_path}' is VALID for {model_type.__name__}.")
    return True
