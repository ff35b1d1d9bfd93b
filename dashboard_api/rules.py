"""
Fixed dataset rules.

Everything the aggregators know about the published health files lives here:
where they are, which columns carry the year, and how raw labels collapse
into the dashboard's categories.
"""

TARGET_ENCODING = "utf-8-sig"  # UTF-8, BOM stripped if present
# Spanish-language exports that are not UTF-8 come from Excel on Windows.
LEGACY_ENCODINGS = ("cp1252", "latin_1")
SEMICOLON = ";"
COMMA = ","

# Tried in order; the first alias present in a record wins.
YEAR_COLUMNS = ("AÑO", "ANIO", "Año", "Anio", "anio")

FONASA_DIR = "fonasa"
ISAPRE_DIR = "isapre"
INDICADORES_DIR = "indicadores"

BENEFICIARIOS_FILES = (
    (FONASA_DIR, "beneficiarios_fonasa.csv"),
    (ISAPRE_DIR, "beneficiarios_isapre.csv"),
)
TIPO_FILES = (
    (FONASA_DIR, "titulares_cargas_fonasa.csv"),
    (ISAPRE_DIR, "cotizantes_cargas_isapre.csv"),
)
SEXO_FILES = (
    (FONASA_DIR, "titulares_cargas_sexo_fonasa.csv"),
    (ISAPRE_DIR, "cotizantes_cargas_sexo_isapre.csv"),
)

EDAD_FILE = "edad_salud.csv"
VIGENCIA_FILE = "vigencia_salud.csv"
REGION_FILE = "region_salud.csv"

# Accented title first, ASCII underscored fallback second.
INDICADOR_FILES = {
    "publico_privado_pib": (
        "Participación público y privado salud en el PIB.csv",
        "Participacion_publico_y_privado_salud_en_el_PIB.csv",
    ),
    "salud_total_pib": (
        "Participación sector salud total en el PIB.csv",
        "Participacion_sector_salud_total_en_el_PIB.csv",
    ),
    "per_capita_constante": (
        "Per cápita en Salud Constante.csv",
        "Per_capita_en_Salud_Constante.csv",
    ),
    "per_capita_corriente": (
        "Per cápita en Salud Corriente.csv",
        "Per_capita_en_Salud_Corriente.csv",
    ),
    "per_capita_ppa": (
        "Per cápita en Salud PPA.csv",
        "Per_capita_en_Salud_PPA.csv",
    ),
}

# Column fragments, compared after normalize_label().
INDICADOR_YEAR_MARKER = "-"
INDICADOR_YEAR_PATTERN = r"anio|año|year"  # raw header, case-insensitive
PRIVADO_COLUMN = "PRIVADO"
PUBLICO_COLUMN = "PUBLICO"
SALUD_PIB_COLUMN = "SALUD % PIB"
PER_CAPITA_COLUMN = "GASTO PER CAPITA EN SALUD"

VALUE_BENEFICIARIOS = "BENEFICIARIOS"
VALUE_POBLACION = "POBLACION"

SEXO_COLUMN = "SEXO"
FONASA_TIPO_COLUMN = "TITULAR_CARGA"
ISAPRE_TIPO_COLUMN = "COTIZANTE_CARGA"
EDAD_COLUMN = "TRAMO_EDAD"
VIGENCIA_COLUMN = "VIGENCIA"
REGION_COLUMN = "REGION"

FONASA = "FONASA"
ISAPRE = "ISAPRE"

FONASA_TITULAR = "TITULAR"
FONASA_CARGA = "CARGA"
ISAPRE_COTIZANTES = "COTIZANTES"
ISAPRE_CARGAS = "CARGAS"

# ISAPRE files spell the category several ways; match on the prefix.
ISAPRE_TIPO_PREFIXES = (
    ("COTIZ", ISAPRE_COTIZANTES),
    ("CARG", ISAPRE_CARGAS),
)

SEXO_CANON = {
    "MASCULINO": "HOMBRE",
    "FEMENINO": "MUJER",
    "SIN CLASIFICAR": "INDETERMINADO",
}
SEXO_ORDER = ("HOMBRE", "MUJER", "INDETERMINADO")
