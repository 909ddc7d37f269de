from importlib.resources import files

from cwlview.core.config import Schema


class ViewerSchema(Schema):
    def __init__(self) -> None:
        super().__init__(
            {"v1.0": "https://w3id.org/cwlview/schemas/config/v1.0/config_schema.json"}
        )
        for version in self.configs.keys():
            self.add_schema(
                schema=files(__package__)
                .joinpath("schemas")
                .joinpath(version)
                .joinpath("config_schema.json")
                .read_text("utf-8")
            )
        self.registry = self.registry.crawl()
