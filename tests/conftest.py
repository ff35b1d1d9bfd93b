from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from dashboard_api.config import Settings
from dashboard_api.main import create_app
from dashboard_api.resolution import FileResolver
from dashboard_api.aggregators import HealthService


def write_csv(path: Path, text: str, encoding: str = "utf-8") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode(encoding))
    return path


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "salud"
    d.mkdir()
    return d


@pytest.fixture()
def settings(data_dir: Path) -> Settings:
    return Settings(data_dir=data_dir)


@pytest.fixture()
def service(settings: Settings) -> HealthService:
    return HealthService(FileResolver(settings))


@pytest.fixture()
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))


@pytest.fixture()
def salud_tree(data_dir: Path) -> Path:
    """A small but complete data tree, mixing delimiters like the real one."""
    write_csv(data_dir / "fonasa" / "beneficiarios_fonasa.csv", "AÑO;BENEFICIARIOS\n2019;90\n2020;100\n")
    write_csv(data_dir / "isapre" / "beneficiarios_isapre.csv", "ANIO,BENEFICIARIOS\n2020,50\n2021,55\n")
    write_csv(
        data_dir / "fonasa" / "titulares_cargas_fonasa.csv",
        "AÑO;TITULAR_CARGA;POBLACION\n"
        "2019;Titular;1.000\n"
        "2019;Carga;500\n"
        "2020;Titular;1.200\n"
        "2020;Carga;600\n",
    )
    write_csv(
        data_dir / "isapre" / "cotizantes_cargas_isapre.csv",
        "AÑO,COTIZANTE_CARGA,POBLACION\n"
        "2020,Cotizantes,300\n"
        "2020,Cargas,200\n"
        "2021,Cotizante,310\n"
        "2021,Carga,210\n",
    )
    write_csv(
        data_dir / "fonasa" / "titulares_cargas_sexo_fonasa.csv",
        "AÑO;SEXO;POBLACION\n"
        "2020;Hombre;10\n"
        "2020;Mujer;20\n"
        "2020;Hombre;5\n"
        "2020;Indeterminado;0\n",
    )
    write_csv(
        data_dir / "isapre" / "cotizantes_cargas_sexo_isapre.csv",
        "ANIO,SEXO,POBLACION\n"
        "2020,Femenino,7\n"
        "2020,Masculino,3\n"
        "2020,Sin clasificar,1\n"
        "2019,Masculino,99\n",
    )
    return data_dir
