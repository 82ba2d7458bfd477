"""Python / R / SQL renderings of feature transformations.

Every builder takes one set of parameters (column names, thresholds, value
lists) and formats the same transformation for all three targets, so the
variants cannot drift apart. SQL is written for PostgreSQL against a table
called ``dataset``.
"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence

from .dataclass import CodeTemplates

LANGUAGES = ("python", "r", "sql")

COMMENT_PREFIX: Dict[str, str] = {"python": "#", "r": "#", "sql": "--"}

SCRIPT_HEADER: Dict[str, str] = {
    "python": "import numpy as np\nimport pandas as pd",
    "r": "library(lubridate)\nlibrary(zoo)",
    "sql": "-- Feature engineering queries (PostgreSQL)",
}

BAND_LABELS = ("Low", "Medium", "High")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _py(column: str) -> str:
    return f"df[{_py_str(column)}]"


def _py_str(value: str) -> str:
    return repr(str(value))


def _r(column: str) -> str:
    return f"df${column}" if _IDENTIFIER.match(column) else f"df$`{column}`"


def _r_str(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _sql(column: str) -> str:
    if _IDENTIFIER.match(column):
        return column
    return '"' + column.replace('"', '""') + '"'


def _sql_str(value: str) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def _select(*expressions: str) -> str:
    body = ",\n  ".join(expressions)
    return f"SELECT *,\n  {body}\nFROM dataset;"


def _number(value: float) -> str:
    return f"{value:.2f}"


def _lines(*lines: str) -> str:
    return "\n".join(lines)


def _feature(*parts: str) -> str:
    return "_".join(str(part) for part in parts)


# ---------------------------------------------------------------------------
# numeric
# ---------------------------------------------------------------------------


def polynomial(column: str) -> CodeTemplates:
    squared, cubed = _feature(column, "squared"), _feature(column, "cubed")
    return CodeTemplates(
        python=_lines(
            f"{_py(squared)} = {_py(column)} ** 2",
            f"{_py(cubed)} = {_py(column)} ** 3",
        ),
        r=_lines(
            f"{_r(squared)} <- {_r(column)}^2",
            f"{_r(cubed)} <- {_r(column)}^3",
        ),
        sql=_select(
            f"POWER({_sql(column)}, 2) AS {_sql(squared)}",
            f"POWER({_sql(column)}, 3) AS {_sql(cubed)}",
        ),
    )


def quantile_bands(column: str, q1: float, q3: float) -> CodeTemplates:
    """Q1/Q3 を境界とする Low / Medium / High の3区分 (左閉区間)"""
    band = _feature(column, "band")
    low, mid, high = BAND_LABELS
    q1_text, q3_text = _number(q1), _number(q3)
    return CodeTemplates(
        python=(
            f"{_py(band)} = pd.cut({_py(column)}, "
            f"bins=[-np.inf, {q1_text}, {q3_text}, np.inf], "
            f"labels=['{low}', '{mid}', '{high}'], right=False)"
        ),
        r=(
            f"{_r(band)} <- cut({_r(column)}, "
            f"breaks = c(-Inf, {q1_text}, {q3_text}, Inf), "
            f"labels = c('{low}', '{mid}', '{high}'), right = FALSE)"
        ),
        sql=_select(
            _lines(
                "CASE",
                f"    WHEN {_sql(column)} < {q1_text} THEN '{low}'",
                f"    WHEN {_sql(column)} < {q3_text} THEN '{mid}'",
                f"    ELSE '{high}'",
                f"  END AS {_sql(band)}",
            )
        ),
    )


def log1p(column: str) -> CodeTemplates:
    feature = _feature(column, "log")
    return CodeTemplates(
        python=f"{_py(feature)} = np.log1p({_py(column)})",
        r=f"{_r(feature)} <- log1p({_r(column)})",
        sql=_select(f"LN({_sql(column)} + 1) AS {_sql(feature)}"),
    )


def zscore(column: str) -> CodeTemplates:
    feature = _feature(column, "z")
    return CodeTemplates(
        python=f"{_py(feature)} = ({_py(column)} - {_py(column)}.mean()) / {_py(column)}.std()",
        r=f"{_r(feature)} <- ({_r(column)} - mean({_r(column)}, na.rm = TRUE)) / sd({_r(column)}, na.rm = TRUE)",
        sql=_select(
            f"({_sql(column)} - AVG({_sql(column)}) OVER ()) / "
            f"NULLIF(STDDEV_SAMP({_sql(column)}) OVER (), 0) AS {_sql(feature)}"
        ),
    )


PAIR_OPERATIONS = ("product", "ratio", "ratio_squared")


def pair_feature(left: str, right: str, feature: str, operation: str) -> CodeTemplates:
    """2カラムから派生量を作る (積 / 比 / 2乗比)"""
    if operation == "product":
        python = f"{_py(left)} * {_py(right)}"
        r = f"{_r(left)} * {_r(right)}"
        sql = f"{_sql(left)} * {_sql(right)}"
    elif operation == "ratio":
        python = f"{_py(left)} / {_py(right)}"
        r = f"{_r(left)} / {_r(right)}"
        sql = f"{_sql(left)} / NULLIF({_sql(right)}, 0)"
    elif operation == "ratio_squared":
        python = f"{_py(left)} / ({_py(right)} ** 2)"
        r = f"{_r(left)} / ({_r(right)}^2)"
        sql = f"{_sql(left)} / NULLIF(POWER({_sql(right)}, 2), 0)"
    else:
        raise ValueError(f"Unsupported pair operation: {operation}")

    return CodeTemplates(
        python=f"{_py(feature)} = {python}",
        r=f"{_r(feature)} <- {r}",
        sql=_select(f"{sql} AS {_sql(feature)}"),
    )


def row_aggregate(prefix: str, columns: Sequence[str]) -> CodeTemplates:
    mean_feature, sum_feature = _feature(prefix, "mean"), _feature(prefix, "sum")
    py_cols = "[" + ", ".join(_py_str(c) for c in columns) + "]"
    r_cols = "c(" + ", ".join(_r_str(c) for c in columns) + ")"
    sql_sum = " + ".join(_sql(c) for c in columns)
    return CodeTemplates(
        python=_lines(
            f"{_py(mean_feature)} = df[{py_cols}].mean(axis=1)",
            f"{_py(sum_feature)} = df[{py_cols}].sum(axis=1)",
        ),
        r=_lines(
            f"{_r(mean_feature)} <- rowMeans(df[, {r_cols}], na.rm = TRUE)",
            f"{_r(sum_feature)} <- rowSums(df[, {r_cols}], na.rm = TRUE)",
        ),
        sql=_select(
            f"({sql_sum}) / {len(columns)}.0 AS {_sql(mean_feature)}",
            f"{sql_sum} AS {_sql(sum_feature)}",
        ),
    )


# ---------------------------------------------------------------------------
# categorical
# ---------------------------------------------------------------------------


def one_hot(column: str, values: Sequence[str]) -> CodeTemplates:
    features = [(value, _feature(column, value)) for value in values]
    return CodeTemplates(
        python=_lines(
            *(
                f"{_py(feature)} = ({_py(column)}.astype(str) == {_py_str(value)}).astype(int)"
                for value, feature in features
            )
        ),
        r=_lines(
            *(
                f"{_r(feature)} <- as.integer(as.character({_r(column)}) == {_r_str(value)})"
                for value, feature in features
            )
        ),
        sql=_select(
            *(
                f"CASE WHEN {_sql(column)} = {_sql_str(value)} THEN 1 ELSE 0 END AS {_sql(feature)}"
                for value, feature in features
            )
        ),
    )


def ordinal(column: str, values: Sequence[str]) -> CodeTemplates:
    """出現順に 0, 1, 2, ... を割り当てる"""
    feature = _feature(column, "ordinal")
    py_mapping = ", ".join(f"{_py_str(v)}: {i}" for i, v in enumerate(values))
    r_levels = ", ".join(_r_str(v) for v in values)
    sql_cases = "\n".join(
        f"    WHEN {_sql_str(v)} THEN {i}" for i, v in enumerate(values)
    )
    return CodeTemplates(
        python=_lines(
            f"mapping = {{{py_mapping}}}",
            f"{_py(feature)} = {_py(column)}.astype(str).map(mapping)",
        ),
        r=_lines(
            f"levels <- c({r_levels})",
            f"{_r(feature)} <- match(as.character({_r(column)}), levels) - 1",
        ),
        sql=_select(f"CASE {_sql(column)}\n{sql_cases}\n  END AS {_sql(feature)}"),
    )


def target_encoding(column: str, target: str = "target") -> CodeTemplates:
    feature = _feature(column, "te")
    return CodeTemplates(
        python=_lines(
            f"means = df.groupby({_py_str(column)})[{_py_str(target)}].mean()",
            f"{_py(feature)} = {_py(column)}.map(means)",
        ),
        r=f"{_r(feature)} <- ave({_r(target)}, {_r(column)}, FUN = function(x) mean(x, na.rm = TRUE))",
        sql=_select(f"AVG({_sql(target)}) OVER (PARTITION BY {_sql(column)}) AS {_sql(feature)}"),
    )


def frequency_encoding(column: str) -> CodeTemplates:
    feature = _feature(column, "freq")
    return CodeTemplates(
        python=_lines(
            f"freq = {_py(column)}.value_counts(normalize=True)",
            f"{_py(feature)} = {_py(column)}.map(freq)",
        ),
        r=f"{_r(feature)} <- ave(rep(1, nrow(df)), {_r(column)}, FUN = length) / nrow(df)",
        sql=_select(
            f"COUNT(*) OVER (PARTITION BY {_sql(column)}) * 1.0 / COUNT(*) OVER () AS {_sql(feature)}"
        ),
    )


def rare_grouping(column: str, rare_values: Sequence[str]) -> CodeTemplates:
    feature = _feature(column, "grouped")
    other = f"Other_{column}"
    py_values = ", ".join(_py_str(v) for v in rare_values)
    r_values = ", ".join(_r_str(v) for v in rare_values)
    sql_values = ", ".join(_sql_str(v) for v in rare_values)
    return CodeTemplates(
        python=_lines(
            f"rare = [{py_values}]",
            f"{_py(feature)} = {_py(column)}.where(~{_py(column)}.astype(str).isin(rare), {_py_str(other)})",
        ),
        r=_lines(
            f"rare <- c({r_values})",
            f"{_r(feature)} <- ifelse(as.character({_r(column)}) %in% rare, {_r_str(other)}, as.character({_r(column)}))",
        ),
        sql=_select(
            f"CASE WHEN {_sql(column)} IN ({sql_values}) THEN {_sql_str(other)} "
            f"ELSE {_sql(column)} END AS {_sql(feature)}"
        ),
    )


def text_length(column: str) -> CodeTemplates:
    feature = _feature(column, "length")
    return CodeTemplates(
        python=f"{_py(feature)} = {_py(column)}.fillna('').astype(str).str.len()",
        r=f"{_r(feature)} <- nchar(ifelse(is.na({_r(column)}), '', as.character({_r(column)})))",
        sql=_select(f"LENGTH(COALESCE({_sql(column)}::text, '')) AS {_sql(feature)}"),
    )


def interaction(first: str, second: str) -> CodeTemplates:
    feature = _feature(first, second)
    return CodeTemplates(
        python=f"{_py(feature)} = {_py(first)}.astype(str) + '_' + {_py(second)}.astype(str)",
        r=f"{_r(feature)} <- paste({_r(first)}, {_r(second)}, sep = '_')",
        sql=_select(f"{_sql(first)} || '_' || {_sql(second)} AS {_sql(feature)}"),
    )


# ---------------------------------------------------------------------------
# datetime
# ---------------------------------------------------------------------------

DATE_PARTS = ("year", "month", "day", "dow")


def date_parts(column: str) -> CodeTemplates:
    """年・月・日・曜日 (月曜=0) を抽出"""
    year, month, day, dow = (_feature(column, part) for part in DATE_PARTS)
    return CodeTemplates(
        python=_lines(
            f"{_py(column)} = pd.to_datetime({_py(column)}, errors='coerce')",
            f"{_py(year)} = {_py(column)}.dt.year",
            f"{_py(month)} = {_py(column)}.dt.month",
            f"{_py(day)} = {_py(column)}.dt.day",
            f"{_py(dow)} = {_py(column)}.dt.dayofweek",
        ),
        r=_lines(
            f"{_r(column)} <- as.Date({_r(column)})",
            f"{_r(year)} <- lubridate::year({_r(column)})",
            f"{_r(month)} <- lubridate::month({_r(column)})",
            f"{_r(day)} <- lubridate::day({_r(column)})",
            f"{_r(dow)} <- lubridate::wday({_r(column)}, week_start = 1) - 1",
        ),
        sql=_select(
            f"EXTRACT(YEAR FROM {_sql(column)}::date) AS {_sql(year)}",
            f"EXTRACT(MONTH FROM {_sql(column)}::date) AS {_sql(month)}",
            f"EXTRACT(DAY FROM {_sql(column)}::date) AS {_sql(day)}",
            f"EXTRACT(ISODOW FROM {_sql(column)}::date) - 1 AS {_sql(dow)}",
        ),
    )


def cyclical_month(column: str) -> CodeTemplates:
    sin_feature, cos_feature = _feature(column, "month_sin"), _feature(column, "month_cos")
    py_month = f"pd.to_datetime({_py(column)}, errors='coerce').dt.month"
    r_month = f"lubridate::month(as.Date({_r(column)}))"
    sql_month = f"EXTRACT(MONTH FROM {_sql(column)}::date)"
    return CodeTemplates(
        python=_lines(
            f"{_py(sin_feature)} = np.sin(2 * np.pi * {py_month} / 12)",
            f"{_py(cos_feature)} = np.cos(2 * np.pi * {py_month} / 12)",
        ),
        r=_lines(
            f"{_r(sin_feature)} <- sin(2 * pi * {r_month} / 12)",
            f"{_r(cos_feature)} <- cos(2 * pi * {r_month} / 12)",
        ),
        sql=_select(
            f"SIN(2 * PI() * {sql_month} / 12) AS {_sql(sin_feature)}",
            f"COS(2 * PI() * {sql_month} / 12) AS {_sql(cos_feature)}",
        ),
    )


def day_interval(start: str, end: str) -> CodeTemplates:
    feature = _feature(end, start, "days")
    return CodeTemplates(
        python=(
            f"{_py(feature)} = (pd.to_datetime({_py(end)}, errors='coerce') - "
            f"pd.to_datetime({_py(start)}, errors='coerce')).dt.days"
        ),
        r=f"{_r(feature)} <- as.numeric(as.Date({_r(end)}) - as.Date({_r(start)}))",
        sql=_select(f"({_sql(end)}::date - {_sql(start)}::date) AS {_sql(feature)}"),
    )


def rolling_mean(date_column: str, value_column: str, window: int = 7) -> CodeTemplates:
    feature = f"rolling_{window}"
    return CodeTemplates(
        python=_lines(
            f"df = df.sort_values({_py_str(date_column)})",
            f"{_py(feature)} = {_py(value_column)}.rolling(window={window}, min_periods=1).mean()",
        ),
        r=_lines(
            f"df <- df[order({_r(date_column)}), ]",
            f"{_r(feature)} <- zoo::rollapplyr({_r(value_column)}, {window}, mean, partial = TRUE)",
        ),
        sql=_select(
            f"AVG({_sql(value_column)}) OVER (ORDER BY {_sql(date_column)} "
            f"ROWS BETWEEN {window - 1} PRECEDING AND CURRENT ROW) AS {_sql(feature)}"
        ),
    )


# ---------------------------------------------------------------------------
# domain bundles
# ---------------------------------------------------------------------------


def discount_and_basket(
    price: str = "price", total_price: str = "total_price", quantity: str = "quantity"
) -> CodeTemplates:
    return CodeTemplates(
        python=_lines(
            f"df['discount_pct'] = ({_py(price)} - {_py(total_price)}) / {_py(price)}",
            f"df['basket_size'] = {_py(quantity)}",
        ),
        r=_lines(
            f"df$discount_pct <- ({_r(price)} - {_r(total_price)}) / {_r(price)}",
            f"df$basket_size <- {_r(quantity)}",
        ),
        sql=_select(
            f"({_sql(price)} - {_sql(total_price)}) / NULLIF({_sql(price)}, 0) AS discount_pct",
            f"{_sql(quantity)} AS basket_size",
        ),
    )


def group_count(group: str, counted: str, feature: str) -> CodeTemplates:
    return CodeTemplates(
        python=f"{_py(feature)} = df.groupby({_py_str(group)})[{_py_str(counted)}].transform('count')",
        r=f"{_r(feature)} <- ave(seq_along({_r(counted)}), {_r(group)}, FUN = length)",
        sql=_select(f"COUNT({_sql(counted)}) OVER (PARTITION BY {_sql(group)}) AS {_sql(feature)}"),
    )


def bmi(weight_kg: str = "weight_kg", height_cm: str = "height_cm") -> CodeTemplates:
    return CodeTemplates(
        python=f"df['BMI'] = {_py(weight_kg)} / ({_py(height_cm)} / 100) ** 2",
        r=f"df$BMI <- {_r(weight_kg)} / (({_r(height_cm)} / 100)^2)",
        sql=_select(f"{_sql(weight_kg)} / NULLIF(POWER({_sql(height_cm)} / 100.0, 2), 0) AS \"BMI\""),
    )


def script_header(language: str) -> str:
    if language not in LANGUAGES:
        raise ValueError(f"Unsupported language: {language}")
    return SCRIPT_HEADER[language]


def comment(language: str, text: str) -> str:
    return f"{COMMENT_PREFIX[language]} {text}"


def feature_names(templates: CodeTemplates) -> List[str]:
    """SQLテンプレートの AS 句から生成カラム名を取り出す"""
    return [name.strip('"') for name in re.findall(r"\bAS\s+(\"[^\"]+\"|\w+)", templates.sql)]
