import asyncio
from pathlib import Path

import pytest

from dashboard_api.aggregators import HealthService, reconcile_year, shape_indicador
from dashboard_api.csv_reader import read_csv
from dashboard_api.errors import MissingInputError, UnsupportedIndicatorError
from dashboard_api import rules

from conftest import write_csv


def run(coro):
    return asyncio.run(coro)


def test_reconcile_prefers_latest_common_year():
    assert reconcile_year({2018, 2019, 2020}, {2019, 2020, 2021}) == 2020


def test_reconcile_disjoint_years_falls_back_to_global_max():
    # Each system's row may then describe a different year.
    assert reconcile_year({2018}, {2021}) == 2021


def test_reconcile_without_years():
    assert reconcile_year(set(), set()) is None
    assert reconcile_year(set(), {2019}) == 2019


def test_reconcile_explicit_year_is_taken_verbatim():
    assert reconcile_year({2020}, {2020}, "2017") == 2017
    assert reconcile_year({2020}, {2020}, 2016) == 2016
    assert reconcile_year({2020}, {2020}, "  ") == 2020
    assert reconcile_year({2020}, {2020}, "abc") is None


def test_beneficiarios_end_to_end(service: HealthService, data_dir: Path):
    write_csv(data_dir / "fonasa" / "beneficiarios_fonasa.csv", "AÑO;BENEFICIARIOS\n2020;100\n")
    write_csv(data_dir / "isapre" / "beneficiarios_isapre.csv", "AÑO;BENEFICIARIOS\n2020;50\n")
    assert run(service.get_beneficiarios()) == [{"anio": "2020", "fonasa": 100, "isapre": 50}]


def test_beneficiarios_outer_join(service: HealthService, salud_tree: Path):
    rows = run(service.get_beneficiarios())
    assert rows == [
        {"anio": "2019", "fonasa": 90},
        {"anio": "2020", "fonasa": 100, "isapre": 50},
        {"anio": "2021", "isapre": 55},
    ]


def test_beneficiarios_sorted_numerically(service: HealthService, data_dir: Path):
    write_csv(data_dir / "fonasa" / "beneficiarios_fonasa.csv", "Anio,BENEFICIARIOS\n2010,1\n999,2\n,3\n")
    write_csv(data_dir / "isapre" / "beneficiarios_isapre.csv", "Anio,BENEFICIARIOS\n")
    assert [r["anio"] for r in run(service.get_beneficiarios())] == ["999", "2010"]


def test_tipo_uses_latest_common_year(service: HealthService, salud_tree: Path):
    result = run(service.get_tipo_beneficiario())
    assert result == {
        "year": 2020,
        "rows": [
            {"sistema": "FONASA", "Titular": 1200, "Carga": 600},
            {"sistema": "ISAPRE", "Titular": 300, "Carga": 200},
        ],
    }


def test_tipo_explicit_year_missing_in_one_source(service: HealthService, salud_tree: Path):
    result = run(service.get_tipo_beneficiario("2021"))
    assert result["year"] == 2021
    assert result["rows"][0] == {"sistema": "FONASA", "Titular": 0, "Carga": 0}
    assert result["rows"][1] == {"sistema": "ISAPRE", "Titular": 310, "Carga": 210}


def test_tipo_disjoint_sources(service: HealthService, data_dir: Path):
    write_csv(data_dir / "fonasa" / "titulares_cargas_fonasa.csv", "AÑO;TITULAR_CARGA;POBLACION\n2018;TITULAR;5\n")
    write_csv(data_dir / "isapre" / "cotizantes_cargas_isapre.csv", "AÑO;COTIZANTE_CARGA;POBLACION\n2021;COTIZANTES;7\n")
    result = run(service.get_tipo_beneficiario())
    assert result["year"] == 2021
    assert result["rows"][0]["Titular"] == 0
    assert result["rows"][1]["Titular"] == 7


def test_tipo_missing_file_fails_before_reading(service: HealthService, salud_tree: Path):
    (salud_tree / "isapre" / "cotizantes_cargas_isapre.csv").unlink()
    with pytest.raises(MissingInputError) as exc:
        run(service.get_tipo_beneficiario())
    assert exc.value.paths == ["isapre/cotizantes_cargas_isapre.csv"]


def test_missing_input_lists_all_files(service: HealthService, data_dir: Path):
    with pytest.raises(MissingInputError) as exc:
        run(service.get_sexo())
    assert exc.value.paths == [
        "fonasa/titulares_cargas_sexo_fonasa.csv",
        "isapre/cotizantes_cargas_sexo_isapre.csv",
    ]


def test_sexo_sums_and_orders_categories(service: HealthService, salud_tree: Path):
    result = run(service.get_sexo())
    assert result == {
        "year": 2020,
        "fonasa": [{"name": "HOMBRE", "value": 15}, {"name": "MUJER", "value": 20}],
        "isapre": [
            {"name": "HOMBRE", "value": 3},
            {"name": "MUJER", "value": 7},
            {"name": "INDETERMINADO", "value": 1},
        ],
    }


def test_sexo_explicit_year(service: HealthService, salud_tree: Path):
    result = run(service.get_sexo(2019))
    assert result == {"year": 2019, "fonasa": [], "isapre": [{"name": "HOMBRE", "value": 99}]}


def test_indicador_public_private_share(service: HealthService, data_dir: Path):
    write_csv(
        data_dir / "indicadores" / "Participación público y privado salud en el PIB.csv",
        "-;Privado;Público\n2019;4,1;5,2\n2020;4,3;5,9\n",
    )
    assert run(service.get_indicador("publico_privado_pib")) == [
        {"anio": "2019", "privado": 4.1, "publico": 5.2},
        {"anio": "2020", "privado": 4.3, "publico": 5.9},
    ]


def test_indicador_ascii_fallback_name(service: HealthService, data_dir: Path):
    write_csv(
        data_dir / "indicadores" / "Per_capita_en_Salud_PPA.csv",
        "Año;Gasto per cápita en salud (US$ PPA)\n2020;2.345,6\n",
    )
    assert run(service.get_indicador("per_capita_ppa")) == [{"anio": "2020", "valor": 2345.6}]


def test_indicador_percent_of_gdp(service: HealthService, data_dir: Path):
    write_csv(
        data_dir / "indicadores" / "Participacion_sector_salud_total_en_el_PIB.csv",
        "Year,Salud % PIB\n2021,9.1\n",
    )
    assert run(service.get_indicador("salud_total_pib")) == [{"anio": "2021", "valor": 9.1}]


def test_indicador_unknown_shape_returns_raw_rows(tmp_path: Path):
    p = write_csv(tmp_path / "x.csv", "Periodo;Monto\n2020;1\n")
    assert shape_indicador(read_csv(p)) == [{"Periodo": "2020", "Monto": "1"}]


def test_indicador_unsupported_name(service: HealthService):
    with pytest.raises(UnsupportedIndicatorError) as exc:
        run(service.get_indicador("gasto_militar"))
    assert "per_capita_ppa" in exc.value.supported


def test_indicador_without_file(service: HealthService):
    with pytest.raises(MissingInputError) as exc:
        run(service.get_indicador("per_capita_corriente"))
    assert exc.value.paths == [
        "indicadores/Per cápita en Salud Corriente.csv",
        "indicadores/Per_capita_en_Salud_Corriente.csv",
    ]


def test_breakdown_missing_file_is_soft(service: HealthService):
    assert run(service.get_edad()) == {"ok": False, "message": "Missing file edad_salud.csv"}
    assert run(service.get_vigencia())["ok"] is False
    assert run(service.get_region())["ok"] is False


def test_region_latest_year(service: HealthService, data_dir: Path):
    write_csv(data_dir / "region_salud.csv", "AÑO;REGION;POBLACION\n2020;Ñuble;10\n2021;Ñuble;12\n2021;Maule;1.500\n")
    assert run(service.get_region()) == {
        "ok": True,
        "year": 2021,
        "rows": [{"region": "Ñuble", "poblacion": 12}, {"region": "Maule", "poblacion": 1500}],
    }
    assert run(service.get_region("2020"))["rows"] == [{"region": "Ñuble", "poblacion": 10}]
    # Unparseable year behaves like no year.
    assert run(service.get_region("abc"))["year"] == 2021


def test_edad_and_vigencia_projection(service: HealthService, data_dir: Path):
    write_csv(data_dir / "edad_salud.csv", "ANIO,TRAMO_EDAD,POBLACION\n2022,0-14,100\n2022,15-29,abc\n")
    write_csv(data_dir / "vigencia_salud.csv", "ANIO,VIGENCIA,POBLACION\n2022,Vigente,7\n")
    assert run(service.get_edad())["rows"] == [
        {"tramo": "0-14", "poblacion": 100},
        {"tramo": "15-29", "poblacion": 0},
    ]
    assert run(service.get_vigencia()) == {"ok": True, "year": 2022, "rows": [{"vigencia": "Vigente", "poblacion": 7}]}


def test_indicador_latin1_public_private_header(service: HealthService, data_dir: Path):
    write_csv(
        data_dir / "indicadores" / "Participacion_publico_y_privado_salud_en_el_PIB.csv",
        "-;Privado;Público\n2019;4,1;5,2\n",
        encoding="latin-1",
    )
    assert run(service.get_indicador("publico_privado_pib")) == [
        {"anio": "2019", "privado": 4.1, "publico": 5.2},
    ]


def test_indicador_combined_public_private_column_is_one_series(tmp_path: Path):
    p = write_csv(tmp_path / "x.csv", "-;Gasto público y privado Salud % PIB\n2020;9,1\n")
    assert shape_indicador(read_csv(p)) == [{"anio": "2020", "valor": 9.1}]


def test_sexo_column_name_comes_from_rules(service: HealthService, data_dir: Path, monkeypatch):
    monkeypatch.setattr(rules, "SEXO_COLUMN", "GENERO")
    write_csv(data_dir / "fonasa" / "titulares_cargas_sexo_fonasa.csv", "AÑO;GENERO;POBLACION\n2020;Mujer;4\n")
    write_csv(data_dir / "isapre" / "cotizantes_cargas_sexo_isapre.csv", "AÑO;GENERO;POBLACION\n2020;Masculino;6\n")
    result = run(service.get_sexo())
    assert result["fonasa"] == [{"name": "MUJER", "value": 4}]
    assert result["isapre"] == [{"name": "HOMBRE", "value": 6}]
