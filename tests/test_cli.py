import pytest

from oapigen.cli import (
    DEFAULT_GENERATE,
    OldConfiguration,
    RunConfiguration,
    infer_old_config_style,
    load_template_overrides,
    new_config_from_old_config,
    parse_args,
    resolve_configuration,
    update_config_from_flags,
    update_old_config_from_flags,
)
from oapigen.config import Configuration, ConfigurationError, GenerateOptions


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_parse_args_defaults():
    args = parse_args(["spec.yaml"])
    assert args.spec == ["spec.yaml"]
    assert args.generate == "types,client,server,spec"
    assert args.explicit_deprecated == frozenset()
    assert args.alias_types is False
    assert args.output_file == ""


def test_parse_args_records_deprecated_flags():
    args = parse_args(["-generate", "types", "--include-tags", "a,b", "spec.yaml"])
    assert args.explicit_deprecated == {"generate", "include-tags"}
    assert args.generate == "types"
    assert args.include_tags == "a,b"


def test_parse_args_requires_one_spec():
    with pytest.raises(ConfigurationError, match="Please specify a path"):
        parse_args([])
    with pytest.raises(ConfigurationError, match="Only one OpenAPI 3.0 spec file"):
        parse_args(["a.yaml", "b.yaml"])


def test_parse_args_version_needs_no_spec():
    args = parse_args(["-version"])
    assert args.print_version is True
    assert args.spec == []


def test_infer_explicit_flag_wins():
    args = parse_args(["-old-config-style", "spec.yaml"])
    assert infer_old_config_style(args, "generate:\n  models: true\n") is True


def test_infer_from_config_text():
    args = parse_args(["spec.yaml"])
    assert infer_old_config_style(args, "generate:\n  - types\n") is True
    assert infer_old_config_style(args, "generate:\n  models: true\n") is False


def test_infer_ambiguous_uses_deprecated_flags():
    text = "package: api\n"
    assert infer_old_config_style(parse_args(["spec.yaml"]), text) is False
    with_flag = parse_args(["-generate", "types", "spec.yaml"])
    assert infer_old_config_style(with_flag, text) is True
    assert infer_old_config_style(with_flag, None) is True


def test_infer_neither_format_raises():
    args = parse_args(["spec.yaml"])
    with pytest.raises(ConfigurationError, match="old version or new version"):
        infer_old_config_style(args, "bogus: 1\n")


def test_update_config_from_flags_overrides_package_and_fills_output():
    args = parse_args(["-package", "flagpkg", "-o", "flag.go", "spec.yaml"])
    run = RunConfiguration(config=Configuration(package_name="filepkg"))
    updated = update_config_from_flags(run, args)
    assert updated.config.package_name == "flagpkg"
    assert updated.output_file == "flag.go"
    kept = update_config_from_flags(RunConfiguration(output_file="file.go"), args)
    assert kept.output_file == "file.go"


def test_update_config_from_flags_rejects_deprecated():
    args = parse_args(["-generate", "types", "-alias-types", "spec.yaml"])
    with pytest.raises(ConfigurationError) as info:
        update_config_from_flags(RunConfiguration(), args)
    assert "--generate, --alias-types" in str(info.value)
    assert "aren't supported in new config style" in str(info.value)


def test_update_old_config_from_flags_file_wins():
    args = parse_args(
        ["-package", "flagpkg", "-include-tags", "a, b", "-o", "out.go", "spec.yaml"]
    )
    filled = update_old_config_from_flags(OldConfiguration(), args)
    assert filled.package_name == "flagpkg"
    assert filled.include_tags == ["a", "b"]
    assert filled.generate_targets == ["types", "client", "server", "spec"]
    assert filled.output_file == "out.go"
    assert filled.import_mapping is None

    kept = update_old_config_from_flags(
        OldConfiguration(package_name="filepkg", include_tags=["x"]), args
    )
    assert kept.package_name == "filepkg"
    assert kept.include_tags == ["x"]


def test_update_old_config_parses_import_mapping():
    args = parse_args(["-import-mapping", "other.yaml:example/other", "spec.yaml"])
    filled = update_old_config_from_flags(OldConfiguration(), args)
    assert filled.import_mapping == {"other.yaml": "example/other"}


def test_new_config_from_old_config_maps_targets():
    args = parse_args(["-response-type-suffix", "Resp", "spec.yaml"])
    old = OldConfiguration(
        package_name="api",
        generate_targets=["types", "chi-server", "skip-fmt"],
        exclude_schemas=["Hidden"],
    )
    run = new_config_from_old_config(old, args)
    assert run.config.generate == GenerateOptions(chi_server=True, models=True)
    assert run.config.output_options.skip_fmt is True
    assert run.config.output_options.response_type_suffix == "Resp"
    assert run.config.output_options.exclude_schemas == ["Hidden"]
    assert run.config.package_name == "api"


def test_new_config_from_old_config_unknown_target():
    args = parse_args(["spec.yaml"])
    with pytest.raises(ConfigurationError, match="unknown generate option bogus"):
        new_config_from_old_config(OldConfiguration(generate_targets=["bogus"]), args)


def test_load_template_overrides(tmp_path):
    (tmp_path / "echo").mkdir()
    _write(tmp_path, "typedef.tmpl", "//blah")
    _write(tmp_path / "echo", "register.tmpl", "inner")
    templates = load_template_overrides(str(tmp_path))
    assert templates == {"typedef.tmpl": "//blah", "echo/register.tmpl": "inner"}
    assert load_template_overrides("") == {}


def test_load_template_overrides_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_template_overrides(str(tmp_path / "absent"))


def test_resolve_without_config_uses_defaults():
    run = resolve_configuration(parse_args(["-package", "api", "spec.yaml"]))
    assert run.config.generate == GenerateOptions(
        echo_server=True, client=True, models=True, embedded_spec=True
    )
    assert run.config.package_name == "api"


def test_resolve_requires_package():
    with pytest.raises(ConfigurationError, match="package name must be specified"):
        resolve_configuration(parse_args(["spec.yaml"]))


def test_resolve_new_style_file(tmp_path):
    path = _write(
        tmp_path,
        "cfg.yaml",
        "package: api\ngenerate:\n  models: true\noutput: gen.go\n",
    )
    run = resolve_configuration(parse_args(["-config", path, "spec.yaml"]))
    assert run.config.generate == GenerateOptions(models=True)
    assert run.output_file == "gen.go"


def test_resolve_old_style_file(tmp_path):
    path = _write(
        tmp_path,
        "cfg.yaml",
        "package: api\ngenerate:\n  - types\n  - client\noutput: gen.go\n",
    )
    run = resolve_configuration(parse_args(["-config", path, "spec.yaml"]))
    assert run.config.generate == GenerateOptions(models=True, client=True)
    assert run.output_file == "gen.go"


def test_resolve_missing_config_file(tmp_path):
    args = parse_args(["-config", str(tmp_path / "none.yaml"), "spec.yaml"])
    with pytest.raises(ConfigurationError, match="error reading config file"):
        resolve_configuration(args)


def test_resolve_rejects_two_servers(tmp_path):
    path = _write(
        tmp_path,
        "cfg.yaml",
        "package: api\ngenerate:\n  chi-server: true\n  echo-server: true\n",
    )
    with pytest.raises(ConfigurationError, match="only one server type"):
        resolve_configuration(parse_args(["-config", path, "spec.yaml"]))


def test_run_configuration_to_dict_round_trip():
    run = RunConfiguration(
        config=Configuration(package_name="api", generate=GenerateOptions(models=True)),
        output_file="out.go",
    )
    data = run.to_dict()
    assert data["output"] == "out.go"
    rest = {k: v for k, v in data.items() if k != "output"}
    assert Configuration.from_dict(rest) == run.config
    assert "output" not in RunConfiguration().to_dict()
    assert DEFAULT_GENERATE == "types,client,server,spec"