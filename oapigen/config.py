"""Code generation configuration: options, defaults and validation."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any


class ConfigurationError(ValueError):
    """Raised when a configuration is malformed or invalid."""


def _opt(key: str, kind: str, *, omitempty: bool = True) -> Any:
    metadata = {"key": key, "kind": kind, "omitempty": omitempty}
    if kind == "list":
        return field(default_factory=list, metadata=metadata)
    if kind == "map":
        return field(default_factory=dict, metadata=metadata)
    if kind == "bool":
        return field(default=False, metadata=metadata)
    return field(default="", metadata=metadata)


def _convert(kind: str, value: Any, where: str) -> Any:
    if kind == "bool":
        if value is None:
            return False
        if not isinstance(value, bool):
            raise ConfigurationError(f"{where}: expected a boolean, got {value!r}")
        return value
    if kind == "str":
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ConfigurationError(f"{where}: expected a string, got {value!r}")
        return value
    if kind == "list":
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"{where}: expected a list of strings, got {value!r}")
        return list(value)
    if kind == "map":
        if value is None:
            return {}
        if not isinstance(value, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        ):
            raise ConfigurationError(
                f"{where}: expected a mapping of strings to strings, got {value!r}"
            )
        return dict(value)
    raise ConfigurationError(f"{where}: unsupported field kind {kind}")


def _read_section(cls: type, data: Any, where: str) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"{where}: expected a mapping, got {data!r}")
    by_key = {f.metadata["key"]: f for f in fields(cls)}
    values = {}
    for key, value in data.items():
        f = by_key.get(key)
        if f is None:
            raise ConfigurationError(f"{where}: field {key} not found")
        values[f.name] = _convert(f.metadata["kind"], value, f"{where}.{key}")
    return cls(**values)


def _write_section(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.metadata["omitempty"] and not value:
            continue
        if isinstance(value, (list, dict)):
            value = type(value)(value)
        out[f.metadata["key"]] = value
    return out


@dataclass
class AdditionalImport:
    """An extra import added to generated code."""

    alias: str = _opt("alias", "str")
    package: str = _opt("package", "str", omitempty=False)


@dataclass
class GenerateOptions:
    """Which kinds of output to generate."""

    chi_server: bool = _opt("chi-server", "bool")
    echo_server: bool = _opt("echo-server", "bool")
    gin_server: bool = _opt("gin-server", "bool")
    gorilla_server: bool = _opt("gorilla-server", "bool")
    strict: bool = _opt("strict-server", "bool")
    client: bool = _opt("client", "bool")
    models: bool = _opt("models", "bool")
    embedded_spec: bool = _opt("embedded-spec", "bool")

    def is_zero(self) -> bool:
        """True when no output kind is selected."""
        return not any(getattr(self, f.name) for f in fields(self))


@dataclass
class CompatibilityOptions:
    """Switches that restore older generator behaviour."""

    old_merge_schemas: bool = _opt("old-merge-schemas", "bool")
    old_enum_conflicts: bool = _opt("old-enum-conflicts", "bool")
    old_aliasing: bool = _opt("old-aliasing", "bool")
    disable_flatten_additional_properties: bool = _opt(
        "disable-flatten-additional-properties", "bool"
    )
    disable_required_readonly_as_pointer: bool = _opt(
        "disable-required-readonly-as-pointer", "bool"
    )
    always_prefix_enum_values: bool = _opt("always-prefix-enum-values", "bool")
    apply_chi_middleware_first_to_last: bool = _opt(
        "apply-chi-middleware-first-to-last", "bool"
    )


@dataclass
class OutputOptions:
    """Options that modify the generated output."""

    skip_fmt: bool = _opt("skip-fmt", "bool")
    skip_prune: bool = _opt("skip-prune", "bool")
    include_tags: list[str] = _opt("include-tags", "list")
    exclude_tags: list[str] = _opt("exclude-tags", "list")
    user_templates: dict[str, str] = _opt("user-templates", "map")
    exclude_schemas: list[str] = _opt("exclude-schemas", "list")
    response_type_suffix: str = _opt("response-type-suffix", "str")
    client_type_name: str = _opt("client-type-name", "str")


@dataclass
class Configuration:
    """Complete code generation configuration."""

    package_name: str = ""
    generate: GenerateOptions = field(default_factory=GenerateOptions)
    compatibility: CompatibilityOptions = field(default_factory=CompatibilityOptions)
    output_options: OutputOptions = field(default_factory=OutputOptions)
    import_mapping: dict[str, str] = field(default_factory=dict)
    additional_imports: list[AdditionalImport] = field(default_factory=list)

    def update_defaults(self) -> Configuration:
        """Return a copy with default outputs selected when none are set."""
        if self.generate.is_zero():
            return replace(
                self,
                generate=GenerateOptions(echo_server=True, models=True, embedded_spec=True),
            )
        return replace(self)

    def validate(self) -> None:
        """Raise ConfigurationError if the configuration is not usable."""
        if not self.package_name:
            raise ConfigurationError("package name must be specified")
        servers = sum(
            (self.generate.chi_server, self.generate.echo_server, self.generate.gin_server)
        )
        if servers > 1:
            raise ConfigurationError("only one server type is supported at a time")

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the configuration file's mapping form, omitting empty values."""
        out: dict[str, Any] = {"package": self.package_name}
        for key, section in (
            ("generate", self.generate),
            ("compatibility", self.compatibility),
            ("output-options", self.output_options),
        ):
            written = _write_section(section)
            if written:
                out[key] = written
        if self.import_mapping:
            out["import-mapping"] = dict(self.import_mapping)
        if self.additional_imports:
            out["additional-imports"] = [_write_section(i) for i in self.additional_imports]
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Configuration:
        """Build a configuration from its mapping form; unknown keys are rejected."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"configuration: expected a mapping, got {data!r}")
        known = {
            "package",
            "generate",
            "compatibility",
            "output-options",
            "import-mapping",
            "additional-imports",
        }
        unknown = [k for k in data if k not in known]
        if unknown:
            raise ConfigurationError(f"configuration: field {unknown[0]} not found")

        raw_imports = data.get("additional-imports")
        if raw_imports is None:
            raw_imports = []
        if not isinstance(raw_imports, list):
            raise ConfigurationError(
                f"additional-imports: expected a list, got {raw_imports!r}"
            )
        return cls(
            package_name=_convert("str", data.get("package"), "package"),
            generate=_read_section(GenerateOptions, data.get("generate"), "generate"),
            compatibility=_read_section(
                CompatibilityOptions, data.get("compatibility"), "compatibility"
            ),
            output_options=_read_section(
                OutputOptions, data.get("output-options"), "output-options"
            ),
            import_mapping=_convert("map", data.get("import-mapping"), "import-mapping"),
            additional_imports=[
                _read_section(AdditionalImport, item, "additional-imports")
                for item in raw_imports
            ],
        )