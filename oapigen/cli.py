"""Command-line handling: flags, configuration files and their two formats."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Sequence

import yaml

from oapigen.config import (
    CompatibilityOptions,
    Configuration,
    ConfigurationError,
    GenerateOptions,
    OutputOptions,
)

DEFAULT_GENERATE = "types,client,server,spec"

# Deprecated flags: namespace attribute -> flag name as the user writes it.
_DEPRECATED_FLAGS = {
    "generate": "generate",
    "include_tags": "include-tags",
    "exclude_tags": "exclude-tags",
    "templates_dir": "templates",
    "import_mapping": "import-mapping",
    "exclude_schemas": "exclude-schemas",
    "response_type_suffix": "response-type-suffix",
    "alias_types": "alias-types",
}

_NEW_STYLE_KEYS = frozenset(
    {
        "package",
        "generate",
        "compatibility",
        "output-options",
        "import-mapping",
        "additional-imports",
    }
)

_OLD_STYLE_KEYS = {
    "package": "package_name",
    "generate": "generate_targets",
    "output": "output_file",
    "include-tags": "include_tags",
    "exclude-tags": "exclude_tags",
    "templates": "templates_dir",
    "import-mapping": "import_mapping",
    "exclude-schemas": "exclude_schemas",
    "response-type-suffix": "response_type_suffix",
    "compatibility": "compatibility",
}

_OLD_STRING_FIELDS = frozenset(
    {"package_name", "output_file", "templates_dir", "response_type_suffix"}
)
_OLD_LIST_FIELDS = frozenset(
    {"generate_targets", "include_tags", "exclude_tags", "exclude_schemas"}
)

# Old-style generate target -> (section, attribute) in the new configuration.
_GENERATE_TARGETS = {
    "client": ("generate", "client"),
    "chi-server": ("generate", "chi_server"),
    "server": ("generate", "echo_server"),
    "gin": ("generate", "gin_server"),
    "gorilla": ("generate", "gorilla_server"),
    "strict-server": ("generate", "strict"),
    "types": ("generate", "models"),
    "spec": ("generate", "embedded_spec"),
    "skip-fmt": ("output", "skip_fmt"),
    "skip-prune": ("output", "skip_prune"),
}


@dataclass
class OldConfiguration:
    """The deprecated configuration file format.

    List and mapping fields are None when absent, so that flags can fill them.
    """

    package_name: str = ""
    generate_targets: list[str] | None = None
    output_file: str = ""
    include_tags: list[str] | None = None
    exclude_tags: list[str] | None = None
    templates_dir: str = ""
    import_mapping: dict[str, str] | None = None
    exclude_schemas: list[str] | None = None
    response_type_suffix: str = ""
    compatibility: CompatibilityOptions = field(default_factory=CompatibilityOptions)


@dataclass
class RunConfiguration:
    """A generator configuration together with the file to write output to."""

    config: Configuration = field(default_factory=Configuration)
    output_file: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the new-style configuration file mapping."""
        out = self.config.to_dict()
        if self.output_file:
            out["output"] = self.output_file
        return out


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oapigen",
        description="Generate code from an OpenAPI 3.0 specification.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-h", "-help", "--help", action="help", help="show this help and exit"
    )
    parser.add_argument(
        "-o",
        dest="output_file",
        default="",
        help="where to output generated code, stdout is default",
    )
    parser.add_argument(
        "-old-config-style",
        "--old-config-style",
        dest="old_config_style",
        action="store_true",
        help="whether to use the older style config file format",
    )
    parser.add_argument(
        "-output-config",
        "--output-config",
        dest="output_config",
        action="store_true",
        help="output a configuration file using current settings",
    )
    parser.add_argument(
        "-config",
        "--config",
        dest="config_file",
        default="",
        help="a YAML config file that controls generator behaviour",
    )
    parser.add_argument(
        "-version",
        "--version",
        dest="print_version",
        action="store_true",
        help="print version and exit",
    )
    parser.add_argument(
        "-package",
        "--package",
        dest="package_name",
        default="",
        help="the package name for generated code",
    )

    deprecated = parser.add_argument_group("deprecated options")
    deprecated.add_argument(
        "-generate",
        "--generate",
        dest="generate",
        default=None,
        help='comma-separated list of code to generate; valid options: "types", '
        '"client", "chi-server", "server", "gin", "gorilla", "strict-server", '
        '"spec", "skip-fmt", "skip-prune"',
    )
    deprecated.add_argument(
        "-include-tags",
        "--include-tags",
        dest="include_tags",
        default=None,
        help="only include operations with the given comma-separated tags",
    )
    deprecated.add_argument(
        "-exclude-tags",
        "--exclude-tags",
        dest="exclude_tags",
        default=None,
        help="exclude operations tagged with the given comma-separated tags",
    )
    deprecated.add_argument(
        "-templates",
        "--templates",
        dest="templates_dir",
        default=None,
        help="path to a directory containing user templates",
    )
    deprecated.add_argument(
        "-import-mapping",
        "--import-mapping",
        dest="import_mapping",
        default=None,
        help="mapping from external references to package paths",
    )
    deprecated.add_argument(
        "-exclude-schemas",
        "--exclude-schemas",
        dest="exclude_schemas",
        default=None,
        help="comma-separated list of schemas to exclude from generation",
    )
    deprecated.add_argument(
        "-response-type-suffix",
        "--response-type-suffix",
        dest="response_type_suffix",
        default=None,
        help="the suffix used for response types",
    )
    deprecated.add_argument(
        "-alias-types",
        "--alias-types",
        dest="alias_types",
        action="store_true",
        default=None,
        help="alias type declarations if possible",
    )
    parser.add_argument("spec", nargs="*", help="path to the OpenAPI 3.0 spec file")
    return parser


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    """Parse command-line arguments.

    The result records which deprecated flags were given explicitly in
    ``explicit_deprecated``. Raises ConfigurationError when the number of spec
    files is wrong.
    """
    args = _build_parser().parse_args(argv)
    args.explicit_deprecated = frozenset(
        flag for attr, flag in _DEPRECATED_FLAGS.items() if getattr(args, attr) is not None
    )
    if args.generate is None:
        args.generate = DEFAULT_GENERATE
    for attr in (
        "include_tags",
        "exclude_tags",
        "templates_dir",
        "import_mapping",
        "exclude_schemas",
        "response_type_suffix",
    ):
        if getattr(args, attr) is None:
            setattr(args, attr, "")
    if args.alias_types is None:
        args.alias_types = False

    if not args.print_version:
        if len(args.spec) < 1:
            raise ConfigurationError("Please specify a path to a OpenAPI 3.0 spec file")
        if len(args.spec) > 1:
            raise ConfigurationError(
                "Only one OpenAPI 3.0 spec file is accepted and it must be the last CLI argument"
            )
    return args


def load_template_overrides(templates_dir: str | Path) -> dict[str, str]:
    """Read user template files, keyed by their path relative to the directory."""
    if not templates_dir:
        return {}
    templates: dict[str, str] = {}
    for entry in sorted(Path(templates_dir).iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            for sub_name, text in load_template_overrides(entry).items():
                templates[f"{entry.name}/{sub_name}"] = text
            continue
        templates[entry.name] = entry.read_text(encoding="utf-8")
    return templates


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _split_mapping(value: str) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in _split_list(value):
        key, sep, target = entry.rpartition(":")
        if not sep or not key or not target:
            raise ConfigurationError(f"error parsing import-mapping: bad entry {entry!r}")
        mapping[key.strip()] = target.strip()
    return mapping


def _load_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML: {exc}") from exc


def _old_field(attr: str, key: str, value: Any) -> Any:
    if attr in _OLD_STRING_FIELDS:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ConfigurationError(f"{key}: expected a string, got {value!r}")
        return value
    if attr in _OLD_LIST_FIELDS:
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"{key}: expected a list of strings, got {value!r}")
        return list(value)
    if attr == "import_mapping":
        if value is None:
            return None
        return Configuration.from_dict({"import-mapping": value}).import_mapping
    return Configuration.from_dict({"compatibility": value}).compatibility


def _old_config_from_mapping(data: Any, *, strict: bool) -> OldConfiguration:
    if data is None:
        return OldConfiguration()
    if not isinstance(data, dict):
        raise ConfigurationError(f"old configuration: expected a mapping, got {data!r}")
    values: dict[str, Any] = {}
    for key, value in data.items():
        attr = _OLD_STYLE_KEYS.get(key)
        if attr is None:
            if strict:
                raise ConfigurationError(f"old configuration: field {key} not found")
            continue
        values[attr] = _old_field(attr, key, value)
    return OldConfiguration(**values)


def _run_config_from_mapping(data: Any, *, strict: bool) -> RunConfiguration:
    if data is None:
        return RunConfiguration()
    if not isinstance(data, dict):
        raise ConfigurationError(f"configuration: expected a mapping, got {data!r}")
    body = dict(data)
    output = body.pop("output", None)
    if output is None:
        output = ""
    if not isinstance(output, str):
        raise ConfigurationError(f"output: expected a string, got {output!r}")
    if not strict:
        body = {k: v for k, v in body.items() if k in _NEW_STYLE_KEYS}
    return RunConfiguration(config=Configuration.from_dict(body), output_file=output)


def _parse_error(parse: Callable[[], Any]) -> ConfigurationError | None:
    try:
        parse()
    except ConfigurationError as exc:
        return exc
    return None


def infer_old_config_style(args: argparse.Namespace, config_text: str | None) -> bool:
    """Decide whether the deprecated configuration format is in use.

    The explicit flag wins; then a config file that parses in only one format
    decides; otherwise any deprecated flag means the old format.
    """
    if args.old_config_style:
        return True

    if config_text is not None:
        old_err = _parse_error(
            lambda: _old_config_from_mapping(_load_yaml(config_text), strict=True)
        )
        new_err = _parse_error(
            lambda: _run_config_from_mapping(_load_yaml(config_text), strict=True)
        )
        if old_err is not None and new_err is None:
            return False
        if old_err is None and new_err is not None:
            return True
        if old_err is not None and new_err is not None:
            raise ConfigurationError(
                "error parsing configuration style as old version or new version: "
                f"{old_err}; {new_err}"
            )

    return bool(args.explicit_deprecated)


def update_config_from_flags(
    config: RunConfiguration, args: argparse.Namespace
) -> RunConfiguration:
    """Apply flags to a new-style configuration; flags override the file.

    Deprecated flags are rejected.
    """
    inner = config.config
    if args.package_name:
        inner = replace(inner, package_name=args.package_name)

    unsupported = []
    if args.generate != DEFAULT_GENERATE:
        unsupported.append("--generate")
    if args.include_tags:
        unsupported.append("--include-tags")
    if args.exclude_tags:
        unsupported.append("--exclude-tags")
    if args.templates_dir:
        unsupported.append("--templates")
    if args.import_mapping:
        unsupported.append("--import-mapping")
    if args.exclude_schemas:
        unsupported.append("--exclude-schemas")
    if args.response_type_suffix:
        unsupported.append("--response-type-suffix")
    if args.alias_types:
        unsupported.append("--alias-types")
    if unsupported:
        raise ConfigurationError(
            f"flags {', '.join(unsupported)} aren't supported in new config style, "
            "please use --old-config-style or update your configuration "
        )

    return RunConfiguration(
        config=inner, output_file=config.output_file or args.output_file
    )


def update_old_config_from_flags(
    old_config: OldConfiguration, args: argparse.Namespace
) -> OldConfiguration:
    """Fill empty fields of an old-style configuration from flags; the file wins."""
    cfg = replace(old_config)
    if not cfg.package_name:
        cfg.package_name = args.package_name
    if cfg.generate_targets is None:
        cfg.generate_targets = _split_list(args.generate)
    if cfg.include_tags is None:
        cfg.include_tags = _split_list(args.include_tags)
    if cfg.exclude_tags is None:
        cfg.exclude_tags = _split_list(args.exclude_tags)
    if not cfg.templates_dir:
        cfg.templates_dir = args.templates_dir
    if cfg.import_mapping is None and args.import_mapping:
        cfg.import_mapping = _split_mapping(args.import_mapping)
    if cfg.exclude_schemas is None:
        cfg.exclude_schemas = _split_list(args.exclude_schemas)
    if not cfg.output_file:
        cfg.output_file = args.output_file
    return cfg


def new_config_from_old_config(
    old_config: OldConfiguration, args: argparse.Namespace
) -> RunConfiguration:
    """Convert an old-style configuration, with flags applied, to the new form."""
    cfg = update_old_config_from_flags(old_config, args)

    sections: dict[str, dict[str, bool]] = {"generate": {}, "output": {}}
    for target in cfg.generate_targets or []:
        try:
            section, attr = _GENERATE_TARGETS[target]
        except KeyError:
            raise ConfigurationError(f"unknown generate option {target}") from None
        sections[section][attr] = True

    try:
        templates = load_template_overrides(cfg.templates_dir)
    except OSError as exc:
        raise ConfigurationError(f"error loading template overrides: {exc}") from exc

    output_options = OutputOptions(
        response_type_suffix=args.response_type_suffix,
        include_tags=list(cfg.include_tags or []),
        exclude_tags=list(cfg.exclude_tags or []),
        exclude_schemas=list(cfg.exclude_schemas or []),
        user_templates=templates,
        **sections["output"],
    )
    config = Configuration(
        package_name=cfg.package_name,
        generate=GenerateOptions(**sections["generate"]),
        compatibility=replace(cfg.compatibility),
        output_options=output_options,
        import_mapping=dict(cfg.import_mapping or {}),
    )
    return RunConfiguration(config=config, output_file=cfg.output_file)


def _read_config_file(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"error reading config file '{path}': {exc}") from exc


def resolve_configuration(args: argparse.Namespace) -> RunConfiguration:
    """Build, default and validate the configuration described by the arguments."""
    config_text = _read_config_file(args.config_file) if args.config_file else None

    if not infer_old_config_style(args, config_text):
        if config_text is not None:
            try:
                run = _run_config_from_mapping(_load_yaml(config_text), strict=False)
            except ConfigurationError as exc:
                raise ConfigurationError(
                    f"error parsing '{args.config_file}' as YAML: {exc}"
                ) from exc
        else:
            run = RunConfiguration(
                config=Configuration(
                    generate=GenerateOptions(
                        echo_server=True, client=True, models=True, embedded_spec=True
                    )
                ),
                output_file=args.output_file,
            )
        try:
            run = update_config_from_flags(run, args)
        except ConfigurationError as exc:
            raise ConfigurationError(f"error processing flags: {exc}") from exc
    else:
        old = OldConfiguration()
        if config_text is not None:
            try:
                old = _old_config_from_mapping(_load_yaml(config_text), strict=False)
            except ConfigurationError as exc:
                raise ConfigurationError(
                    f"error parsing '{args.config_file}' as YAML: {exc}"
                ) from exc
        run = new_config_from_old_config(old, args)

    run = replace(run, config=run.config.update_defaults())
    try:
        run.config.validate()
    except ConfigurationError as exc:
        raise ConfigurationError(f"configuration error: {exc}") from exc
    return run