"""Export the structure of a FARM model as a Graphviz DOT graph."""
from __future__ import annotations

from farmdecode.farm.enums import DATA_KIND_NAMES, GEOMETRY_NAMES, UNITS_NAMES, lookup_enum
from farmdecode.farm.records import FarmModel


def _escape(text: str) -> str:
    """Escape a decoded label for use inside a DOT string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _quote(text: str) -> str:
    # Decoded names are passed through _escape first; the \n breaks are ours
    return '"' + text + '"'


def export_dot(model: FarmModel, max_nodes: int = 5) -> str:
    """Render the file, its table and maps, and a sample of features/attributes.

    Render with: dot -Tpng farm.dot -o farm.png
    """
    table = model.table
    farm_text = f"FARM file\\nbyte order: {model.byte_order.label}\\nversion: {model.version}"
    table_text = f"FARM table\\nfeatures: {table.feature_count}\\nattributes: {table.attribute_count}"
    label_text = f"label+geometry -> category\\nentries: {len(model.label_map)}"
    category_text = f"category -> feature\\nentries: {len(model.features())}"
    attribute_text = f"code -> attribute\\nentries: {len(model.attributes())}"
    lines = [
        "digraph FarmStructure {",
        "  rankdir=LR;",
        "  node [shape=box, style=filled, fillcolor=lightblue];",
        "  edge [color=navy];",
        "",
        f"  farm [label={_quote(farm_text)}, shape=ellipse, fillcolor=lightgreen];",
        f"  farmTable [label={_quote(table_text)}];",
        f"  labelMap [label={_quote(label_text)}];",
        f"  categoryMap [label={_quote(category_text)}];",
        f"  attributeMap [label={_quote(attribute_text)}];",
        "",
    ]

    feature_nodes: list[str] = []
    for feature in model.features()[:max_nodes]:
        node = f"feature{feature.category}"
        labels = model.labels_for_category(feature.category)
        name = _escape(labels[0].label) if labels else f"#{feature.category}"
        text = (
            f"feature {name}\\ncode: {feature.code}\\n"
            f"geometry: {lookup_enum(GEOMETRY_NAMES, feature.geometry)}\\n"
            f"precedence: {feature.precedence}"
        )
        lines.append(f"  {node} [label={_quote(text)}];")
        feature_nodes.append(node)

    attribute_nodes: list[str] = []
    for attribute in model.attributes()[:max_nodes]:
        node = f"attribute{attribute.code}"
        text = (
            f"attribute {_escape(attribute.label)}\\ncode: {attribute.code}\\n"
            f"type: {lookup_enum(DATA_KIND_NAMES, attribute.data_kind)}\\n"
            f"units: {lookup_enum(UNITS_NAMES, attribute.units)}"
        )
        lines.append(f"  {node} [label={_quote(text)}, fillcolor=lightyellow];")
        attribute_nodes.append(node)
    lines.append("")

    lines += [
        "  farm -> farmTable;",
        "  farm -> labelMap;",
        "  farm -> categoryMap;",
        "  farm -> attributeMap;",
        "  labelMap -> categoryMap [style=dashed];",
    ]
    lines += [f"  categoryMap -> {node};" for node in feature_nodes]
    lines += [f"  attributeMap -> {node};" for node in attribute_nodes]
    lines.append("")

    # Feature -> attribute edges for cells the sampled features actually carry
    lines += [
        "  subgraph cluster_relationships {",
        '    label="feature carries attribute";',
        "    style=dashed;",
    ]
    shown_attributes = {a.code for a in model.attributes()[:max_nodes]}
    for feature in model.features()[:max_nodes]:
        if feature.category >= table.feature_count:
            continue
        for code in table.row(feature.category):
            if code in shown_attributes:
                lines.append(f"    feature{feature.category} -> attribute{code};")
    lines += ["  }", "}", ""]

    return "\n".join(lines)
