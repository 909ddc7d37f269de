from collections.abc import Iterable, MutableMapping
from typing import Any

from jsonschema import ValidationError
from jsonschema.protocols import Validator
from jsonschema.validators import validator_for
from ruamel.yaml import YAML

from cwlview.config.schema import ViewerSchema
from cwlview.core.exception import WorkflowDefinitionException


def _get_path(error: ValidationError) -> str:
    return "/".join(str(p) for p in error.absolute_path) or "<root>"


def handle_errors(errors: Iterable[ValidationError]) -> None:
    """Raise a single exception listing every schema violation, ordered by location."""
    if not (errors := sorted(errors, key=lambda e: (_get_path(e), e.message))):
        return
    raise WorkflowDefinitionException(
        "The cwlview configuration is invalid because:\n"
        + "\n".join(f" - {_get_path(e)}: {e.message}" for e in errors)
    )


class ViewerValidator:
    def __init__(self) -> None:
        self.schema: ViewerSchema = ViewerSchema()
        self.yaml: YAML = YAML(typ="safe")

    def _get_validator(self, version: str) -> Validator:
        schema = self.schema.get_config(version).contents
        return validator_for(schema)(schema, registry=self.schema.registry)

    def validate_file(self, config_file: str) -> MutableMapping[str, Any]:
        with open(config_file) as f:
            return self.validate(self.yaml.load(f) or {})

    def validate(self, config: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        if "version" not in config:
            raise WorkflowDefinitionException(
                "The `version` clause is mandatory and should be equal to "
                f"{' or '.join(f'`{v}`' for v in self.schema.configs)}."
            )
        handle_errors(self._get_validator(config["version"]).iter_errors(config))
        return config
