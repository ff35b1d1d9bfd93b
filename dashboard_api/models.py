from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class BeneficiariosRow(BaseModel):
    anio: str
    fonasa: Optional[int] = None
    isapre: Optional[int] = None


class BeneficiariosResponse(BaseModel):
    rows: List[BeneficiariosRow] = Field(default_factory=list)


class TipoRow(BaseModel):
    sistema: str
    Titular: int = 0
    Carga: int = 0


class TipoResponse(BaseModel):
    year: Optional[int] = Field(default=None, examples=[2023])
    rows: List[TipoRow] = Field(default_factory=list)


class SexoItem(BaseModel):
    name: str
    value: int


class SexoResponse(BaseModel):
    year: Optional[int] = Field(default=None, examples=[2023])
    fonasa: List[SexoItem] = Field(default_factory=list)
    isapre: List[SexoItem] = Field(default_factory=list)


class IndicadorResponse(BaseModel):
    # Share, single-series or raw rows depending on the file's columns.
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class BreakdownResponse(BaseModel):
    ok: bool
    year: Optional[int] = None
    rows: Optional[List[Dict[str, Union[str, int, None]]]] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    kind: str
    detail: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    time: str
