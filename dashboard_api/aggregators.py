"""
Health-statistics aggregations over the FONASA / ISAPRE CSV tree.

Each public coroutine reads its files fresh, joins the reads, and returns a
JSON-ready dict (or list). Nothing is cached between calls.

Year handling: when the caller gives no year, two-source aggregations settle
on the most recent year both sources cover, falling back to the most recent
year either covers. In that fallback the two systems' rows may describe
different years; the dashboard accepts that.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from .csv_reader import Dataset, Record, read_csv_async
from .errors import UnsupportedIndicatorError
from .normalize import find_column, normalize_label, parse_year, record_year, to_float, to_int
from .resolution import FileResolver
from . import rules

logger = logging.getLogger(__name__)

YearParam = Union[str, int, None]

_YEAR_HEADER = re.compile(rules.INDICADOR_YEAR_PATTERN, re.IGNORECASE)


def requested_year(year: YearParam) -> Optional[int]:
    """Explicit year from the caller, or None for "pick automatically"."""
    if year is None or str(year).strip() == "":
        return None
    return parse_year(year)


def is_explicit(year: YearParam) -> bool:
    return year is not None and str(year).strip() != ""


def years_in(dataset: Iterable[Record]) -> Set[int]:
    return {y for y in (record_year(r) for r in dataset) if y is not None}


def reconcile_year(years_a: Set[int], years_b: Set[int], year: YearParam = None) -> Optional[int]:
    """
    Pick the year two independent sources should be compared on.

    An explicit year is used as given, with no check that either source has
    it. Otherwise: the latest common year, else the latest year in either
    source, else None.
    """
    if is_explicit(year):
        return requested_year(year)
    common = years_a & years_b
    if common:
        return max(common)
    every = years_a | years_b
    return max(every) if every else None


def latest_year(dataset: Iterable[Record], year: YearParam = None) -> Optional[int]:
    explicit = requested_year(year)
    if explicit is not None:
        return explicit
    years = years_in(dataset)
    return max(years) if years else None


def rows_for_year(dataset: Iterable[Record], year: Optional[int]) -> List[Record]:
    if year is None:
        return []
    return [r for r in dataset if record_year(r) == year]


def canonical_isapre_tipo(raw: Any) -> str:
    label = normalize_label(raw)
    for prefix, category in rules.ISAPRE_TIPO_PREFIXES:
        if label.startswith(prefix):
            return category
    return label


def canonical_sexo(raw: Any) -> str:
    label = normalize_label(raw)
    return rules.SEXO_CANON.get(label, label)


def first_value(
    rows: Iterable[Record],
    column: str,
    category: str,
    canonical: Callable[[Any], str],
    value_column: str = rules.VALUE_POBLACION,
) -> int:
    for r in rows:
        if canonical(r.get(column)) == category:
            return to_int(r.get(value_column))
    return 0


def sum_by_sexo(rows: Iterable[Record]) -> List[Dict[str, Any]]:
    totals: Dict[str, int] = {}
    for r in rows:
        key = canonical_sexo(r.get(rules.SEXO_COLUMN))
        totals[key] = totals.get(key, 0) + to_int(r.get(rules.VALUE_POBLACION))
    return [{"name": k, "value": totals[k]} for k in rules.SEXO_ORDER if totals.get(k)]


def shape_indicador(dataset: Dataset) -> List[Dict[str, Any]]:
    """
    Project indicator rows onto the series the dashboard plots.

    The column set decides the shape: public/private shares, a single
    "% of GDP" series, or a single per-capita series. Files matching none of
    those come back as raw records.
    """
    cols = list(dataset.columns)
    col_year = next((c for c in cols if c == rules.INDICADOR_YEAR_MARKER), None) or next(
        (c for c in cols if _YEAR_HEADER.search(c)), None
    )

    def anio(r: Record) -> str:
        return r.get(col_year, "") if col_year else ""

    col_privado = find_column(cols, rules.PRIVADO_COLUMN)
    col_publico = find_column(cols, rules.PUBLICO_COLUMN)
    # One combined "public and private" column is a single series.
    if col_privado and col_publico and col_privado != col_publico:
        return [
            {"anio": anio(r), "privado": to_float(r.get(col_privado)), "publico": to_float(r.get(col_publico))}
            for r in dataset
        ]

    col_value = find_column(cols, rules.SALUD_PIB_COLUMN) or find_column(cols, rules.PER_CAPITA_COLUMN)
    if col_value:
        return [{"anio": anio(r), "valor": to_float(r.get(col_value))} for r in dataset]

    logger.info("%s has no recognised series columns, returning raw rows", dataset.path.name)
    return [dict(r) for r in dataset]


class HealthService:
    def __init__(self, resolver: FileResolver):
        self.resolver = resolver

    async def _read_required(self, files) -> List[Dataset]:
        paths = self.resolver.require(*(self.resolver.resolve(*parts) for parts in files))
        return list(await asyncio.gather(*(read_csv_async(p) for p in paths)))

    async def get_beneficiarios(self) -> List[Dict[str, Any]]:
        """Yearly beneficiaries per system, outer-joined on the year text."""
        fonasa, isapre = await self._read_required(rules.BENEFICIARIOS_FILES)

        by_year: Dict[str, Dict[str, Any]] = {}
        for r in fonasa:
            y = _year_text(r)
            if y:
                by_year[y] = {"anio": y, "fonasa": to_int(r.get(rules.VALUE_BENEFICIARIOS))}
        for r in isapre:
            y = _year_text(r)
            if y:
                row = by_year.setdefault(y, {"anio": y})
                row["isapre"] = to_int(r.get(rules.VALUE_BENEFICIARIOS))

        return sorted(by_year.values(), key=lambda row: to_float(row["anio"]))

    async def get_tipo_beneficiario(self, year: YearParam = None) -> Dict[str, Any]:
        fonasa, isapre = await self._read_required(rules.TIPO_FILES)
        y = reconcile_year(years_in(fonasa), years_in(isapre), year)

        f_rows = rows_for_year(fonasa, y)
        i_rows = rows_for_year(isapre, y)
        return {
            "year": y,
            "rows": [
                {
                    "sistema": rules.FONASA,
                    "Titular": first_value(f_rows, rules.FONASA_TIPO_COLUMN, rules.FONASA_TITULAR, normalize_label),
                    "Carga": first_value(f_rows, rules.FONASA_TIPO_COLUMN, rules.FONASA_CARGA, normalize_label),
                },
                {
                    "sistema": rules.ISAPRE,
                    "Titular": first_value(i_rows, rules.ISAPRE_TIPO_COLUMN, rules.ISAPRE_COTIZANTES, canonical_isapre_tipo),
                    "Carga": first_value(i_rows, rules.ISAPRE_TIPO_COLUMN, rules.ISAPRE_CARGAS, canonical_isapre_tipo),
                },
            ],
        }

    async def get_sexo(self, year: YearParam = None) -> Dict[str, Any]:
        fonasa, isapre = await self._read_required(rules.SEXO_FILES)
        y = reconcile_year(years_in(fonasa), years_in(isapre), year)
        return {
            "year": y,
            "fonasa": sum_by_sexo(rows_for_year(fonasa, y)),
            "isapre": sum_by_sexo(rows_for_year(isapre, y)),
        }

    async def get_indicador(self, nombre: str) -> List[Dict[str, Any]]:
        names = rules.INDICADOR_FILES.get(nombre)
        if names is None:
            raise UnsupportedIndicatorError(nombre, rules.INDICADOR_FILES)
        path = self.resolver.resolve_any(self.resolver.candidates(rules.INDICADORES_DIR, names))
        return shape_indicador(await read_csv_async(path))

    async def _breakdown(self, filename: str, column: str, key: str, year: YearParam) -> Dict[str, Any]:
        # Soft failure: these panels show a notice instead of an error page.
        path = self.resolver.resolve(filename)
        if not self.resolver.exists(path):
            logger.info("optional file %s is absent", self.resolver.display(path))
            return {"ok": False, "message": f"Missing file {self.resolver.display(path)}"}

        dataset = await read_csv_async(path)
        y = latest_year(dataset, year)
        return {
            "ok": True,
            "year": y,
            "rows": [
                {key: r.get(column), "poblacion": to_int(r.get(rules.VALUE_POBLACION))}
                for r in rows_for_year(dataset, y)
            ],
        }

    async def get_edad(self, year: YearParam = None) -> Dict[str, Any]:
        return await self._breakdown(rules.EDAD_FILE, rules.EDAD_COLUMN, "tramo", year)

    async def get_vigencia(self, year: YearParam = None) -> Dict[str, Any]:
        return await self._breakdown(rules.VIGENCIA_FILE, rules.VIGENCIA_COLUMN, "vigencia", year)

    async def get_region(self, year: YearParam = None) -> Dict[str, Any]:
        return await self._breakdown(rules.REGION_FILE, rules.REGION_COLUMN, "region", year)


def _year_text(record: Record) -> str:
    for alias in rules.YEAR_COLUMNS:
        value = record.get(alias)
        if value is not None:
            return str(value).strip()
    return ""
