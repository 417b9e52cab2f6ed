"""Click CLI for the FARM decoder."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import click

from farmdecode.config import configure_logging, derive_output_path
from farmdecode.farm.constants import FARM_FILE_LABEL
from farmdecode.farm.enums import (
    DATA_KIND_NAMES,
    GEOMETRY_NAMES,
    UNITS_NAMES,
    UNITS_SYMBOLS,
    Geometry,
    lookup_enum,
    usage_flag_names,
)
from farmdecode.farm.errors import FarmError
from farmdecode.farm.reader import FarmCache, read_farm_header
from farmdecode.farm.records import (
    BoolRef,
    BoundedFloat,
    BoundedInt,
    DataTypeSpec,
    EnumRef,
    FarmModel,
    NoValue,
    StringRef,
    UuidRef,
)
from farmdecode.profiles import (
    Config,
    Profile,
    load_config,
    resolve_farm,
    save_config,
    validate_profile_name,
)


class Context:
    """Holds the resolved FARM path and the decoded model for one invocation."""

    def __init__(self, farm: Path | None = None, profile: str | None = None):
        self._explicit_farm = farm
        self._profile_name = profile
        self._resolved_farm: Path | None = None
        self.cache = FarmCache()

    @property
    def farm(self) -> Path:
        if self._resolved_farm is None:
            self._resolved_farm = resolve_farm(self._explicit_farm, self._profile_name)
        return self._resolved_farm

    def load(self) -> FarmModel:
        """Decode the FARM file, turning decode errors into a clean CLI failure."""
        try:
            return self.cache.load(self.farm)
        except FarmError as exc:
            raise click.ClickException(f"FARM decode failed [{exc.code}]: {exc}") from exc

    @property
    def warnings(self) -> list[str]:
        return self.cache.session(self.farm).warnings


pass_ctx = click.make_pass_decorator(Context)


def describe_spec(spec: DataTypeSpec, units: str = "") -> str:
    """One-line human-readable form of a data type spec."""
    suffix = f" {units}" if units else ""
    if isinstance(spec, NoValue):
        return "-"
    if isinstance(spec, BoundedInt):
        return f"int32 default={spec.default}{suffix} range=[{spec.min}, {spec.max}]"
    if isinstance(spec, BoundedFloat):
        return f"float64 default={spec.default:g}{suffix} range=[{spec.min:g}, {spec.max:g}]"
    if isinstance(spec, StringRef):
        return "string"
    if isinstance(spec, EnumRef):
        values = ", ".join(str(e) for e in sorted(spec.valid_set))
        return f"enum default={spec.default} valid={{{values}}}"
    if isinstance(spec, BoolRef):
        return f"boolean default={'true' if spec.default else 'false'}"
    if isinstance(spec, UuidRef):
        return "uuid"
    raise TypeError(f"Unhandled data type spec {type(spec).__name__}")


@click.group()
@click.option(
    "--farm", "-f", required=False, default=None,
    type=click.Path(exists=False, path_type=Path),
    help="FARM file or terrain database directory (optional if profiles configured)",
)
@click.option(
    "--profile", "-p", default=None, type=str,
    help="Named profile to use (from farm init)",
)
@click.option(
    "--log-level", default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (default: from config, else WARNING)",
)
@click.option(
    "--log-file", default=None, type=click.Path(dir_okay=False, path_type=Path),
    help="Also write a full DEBUG log to this file",
)
@click.version_option(package_name="farmdecode")
@click.pass_context
def cli(ctx, farm: Optional[Path], profile: Optional[str], log_level: Optional[str],
        log_file: Optional[Path]):
    """farm - FARM terrain database decoder.

    Decode the Feature-Attribute Relationship Model file of a terrain
    database and inspect which attributes each feature may carry.
    """
    if log_level is None:
        log_level = load_config().log_level or "WARNING"
    configure_logging(log_level, log_file)
    ctx.ensure_object(dict)
    ctx.obj = Context(farm=farm, profile=profile)


def _echo_profiles(config: Config) -> None:
    for name, profile in config.profiles.items():
        marker = "*" if name == config.default_profile else " "
        click.echo(f"  {marker} {name:<16} {profile.describe()}")


def _prompt_profile(config: Config) -> Profile:
    """Ask for a profile name and a path until the path holds a readable FARM file."""
    while True:
        name = click.prompt("Profile name", default=None if config.profiles else "default").strip()
        if validate_profile_name(name):
            break
        click.echo("  Profile names may only use letters, digits, '-' and '_'.")

    while True:
        raw = click.prompt(f"Terrain database directory or {FARM_FILE_LABEL} path")
        profile = Profile.from_target(name, Path(raw.strip().strip("'\"")))
        problem = profile.problem()
        if problem is not None:
            click.echo(f"  {problem}")
            continue
        try:
            byte_order, version = read_farm_header(profile.farm)
        except FarmError as exc:
            click.echo(f"  {profile.farm} is not a readable FARM file [{exc.code}]: {exc}")
            continue
        click.echo(f"  {profile.farm}: {byte_order.label}, version {version}")
        return profile


@cli.command()
def init():
    """Register terrain databases as named profiles (interactive)."""
    config = load_config()
    if config.profiles:
        click.echo("Configured profiles (* = default):")
        _echo_profiles(config)
        if click.confirm("Discard them and start over?", default=False):
            config = Config(log_level=config.log_level)
        click.echo()

    while True:
        profile = _prompt_profile(config)
        replaced = profile.name in config.profiles
        config.profiles[profile.name] = profile
        if replaced:
            click.echo(f"  Replaced profile '{profile.name}'")
        if config.default_profile not in config.profiles or click.confirm(
            f"Make '{profile.name}' the default profile?", default=False
        ):
            config.default_profile = profile.name
        if not click.confirm("Register another terrain database?", default=False):
            break

    saved = save_config(config)
    click.echo(f"\nSaved {len(config.profiles)} profile(s) to {saved} (* = default):")
    _echo_profiles(config)
    click.echo("\nTry: farm parse    or    farm --profile <name> list-features")


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Also list features and attributes")
@pass_ctx
def parse(ctx: Context, verbose: bool):
    """Decode the FARM file and print a summary."""
    farm = ctx.farm
    click.echo(f"FARM: {farm}")

    t0 = time.perf_counter()
    model = ctx.load()
    click.echo(f"Decoded in {(time.perf_counter() - t0) * 1000:.1f} ms\n")

    for warning in ctx.warnings:
        click.echo(f"Warning: {warning}")

    summary = model.summary()
    click.echo(f"Byte order:  {model.byte_order.label}")
    click.echo(f"Version:     {model.version}")
    click.echo(f"Table:       {summary['rows']} rows x {summary['columns']} columns "
               f"({summary['cells']:,} non-empty cells)")
    codes = model.table.attribute_codes
    if codes:
        shown = ", ".join(str(c) for c in codes[:10])
        more = f", ... ({len(codes) - 10} more)" if len(codes) > 10 else ""
        click.echo(f"Codes:       {shown}{more}")
    click.echo(f"Labels:      {summary['labels']}")
    click.echo(f"Features:    {summary['features']}")
    click.echo(f"Attributes:  {summary['attributes']}")

    if verbose:
        click.echo()
        _print_features(model)
        click.echo()
        _print_attributes(model)


def _print_features(model: FarmModel) -> None:
    click.echo(f"{'Cat':>5}  {'Label':<30}  {'Geometry':<8}  {'Code':>6}  {'Prec':>5}  {'Overlay':>7}")
    click.echo("-" * 72)
    for feature in model.features():
        labels = model.labels_for_category(feature.category)
        label = ", ".join(k.label for k in labels) or "(unlabeled)"
        click.echo(
            f"{feature.category:>5}  {label:<30}  {lookup_enum(GEOMETRY_NAMES, feature.geometry):<8}  "
            f"{feature.code:>6}  {feature.precedence:>5}  {feature.attribute_overlay_size:>7}"
        )


def _print_attributes(model: FarmModel) -> None:
    click.echo(f"{'Code':>5}  {'Label':<30}  {'Type':<12}  {'Units':<26}  {'Edit'}")
    click.echo("-" * 84)
    for attribute in model.attributes():
        click.echo(
            f"{attribute.code:>5}  {attribute.label:<30}  "
            f"{lookup_enum(DATA_KIND_NAMES, attribute.data_kind):<12}  "
            f"{lookup_enum(UNITS_NAMES, attribute.units):<26}  "
            f"{'yes' if attribute.editable else 'no'}"
        )


@cli.command("list-features")
@pass_ctx
def list_features(ctx: Context):
    """List all features with their labels."""
    model = ctx.load()
    features = model.features()
    if not features:
        click.echo("No features in FARM file.")
        return
    click.echo(f"Features ({len(features)}):\n")
    _print_features(model)


@cli.command("list-attributes")
@pass_ctx
def list_attributes(ctx: Context):
    """List all attributes."""
    model = ctx.load()
    attributes = model.attributes()
    if not attributes:
        click.echo("No attributes in FARM file.")
        return
    click.echo(f"Attributes ({len(attributes)}):\n")
    _print_attributes(model)


@cli.command("feature-info")
@click.argument("label")
@click.argument("geometry")
@pass_ctx
def feature_info(ctx: Context, label: str, geometry: str):
    """Show a feature by LABEL and GEOMETRY (point, linear, areal, none)."""
    try:
        geom = Geometry.parse(geometry)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="GEOMETRY") from exc

    model = ctx.load()
    feature = model.feature_by_label_and_geometry(label, geom)
    if feature is None:
        raise click.ClickException(f"Feature not found: {label} ({geom.name.lower()})")

    flags = ", ".join(usage_flag_names(feature.usage_bitmask)) or "none"
    click.echo(f"Feature {label} ({geom.name.lower()})")
    click.echo(f"  Category:      {feature.category}")
    click.echo(f"  Code:          {feature.code}")
    click.echo(f"  Geometry:      {lookup_enum(GEOMETRY_NAMES, feature.geometry)}")
    click.echo(f"  Usage:         0x{feature.usage_bitmask:08X} ({flags})")
    click.echo(f"  Precedence:    {feature.precedence}")
    click.echo(f"  Overlay size:  {feature.attribute_overlay_size:,} bytes")

    if feature.category < model.table.feature_count:
        cells = model.table.row(feature.category)
        click.echo(f"\n  Attributes ({len(cells)}):")
        for code, spec in cells.items():
            attribute = model.attribute_by_code(code)
            name = attribute.label if attribute else f"#{code}"
            units = lookup_enum(UNITS_SYMBOLS, attribute.units) if attribute else ""
            click.echo(f"    {code:>5}  {name:<30}  {describe_spec(spec, units)}")


@cli.command("attribute-info")
@click.argument("code_or_label")
@pass_ctx
def attribute_info(ctx: Context, code_or_label: str):
    """Show an attribute by code (decimal) or label."""
    model = ctx.load()
    if code_or_label.isdigit():
        attribute = model.attribute_by_code(int(code_or_label))
    else:
        attribute = model.attribute_by_label(code_or_label)
    if attribute is None:
        raise click.ClickException(f"Attribute not found: {code_or_label}")

    click.echo(f"Attribute {attribute.label}")
    click.echo(f"  Code:      {attribute.code}")
    click.echo(f"  Type:      {lookup_enum(DATA_KIND_NAMES, attribute.data_kind)}")
    click.echo(f"  Units:     {lookup_enum(UNITS_NAMES, attribute.units)}")
    click.echo(f"  Editable:  {'yes' if attribute.editable else 'no'}")

    users = []
    for row in range(model.table.feature_count):
        spec = model.cell_at(row, attribute.code)
        if not isinstance(spec, NoValue):
            users.append((row, spec))
    click.echo(f"\n  Carried by {len(users)} feature row(s)")
    for row, spec in users[:50]:
        labels = model.labels_for_category(row)
        name = labels[0].label if labels else f"#{row}"
        click.echo(f"    {row:>5}  {name:<30}  {describe_spec(spec)}")
    if len(users) > 50:
        click.echo(f"    ... and {len(users) - 50} more")


@cli.command()
@click.option("--format", "fmt", type=click.Choice(["json", "dot", "csv"]), default="json")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Output file path (default: next to the FARM file; '-' for stdout)")
@click.option("--cells", is_flag=True, help="Include table cells in JSON output")
@pass_ctx
def export(ctx: Context, fmt: str, output: Optional[Path], cells: bool):
    """Export the decoded model as JSON, DOT or CSV."""
    model = ctx.load()

    if fmt == "json":
        from farmdecode.export.json_export import export_json
        data = export_json(model, include_cells=cells)
    elif fmt == "dot":
        from farmdecode.export.dot_export import export_dot
        data = export_dot(model)
    else:
        from farmdecode.export.csv_export import export_csv
        data = export_csv(model)

    if output is not None and str(output) == "-":
        click.echo(data)
        return

    if output is None:
        output = derive_output_path(ctx.farm, fmt)
    output.write_text(data, encoding="utf-8")
    click.echo(f"Exported to {output}")
    if fmt == "dot":
        click.echo(f"Render with: dot -Tpng {output} -o farm-structure.png")
