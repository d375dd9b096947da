"""Keys of the order meta bag.

The names are the persisted column names of the office's order table and
must not be translated.
"""

STATUS = "estado_operacional"
PROVIDER_ID = "proveedor_id"
REFERENCE = "referencia"
INTERNAL_COMMENT = "comentario_interno"
LINGUISTIC_COMMENT = "comentario_linguistico"
PAPER_DELIVERY = "envio_papel"
SCHEDULED_DATE = "fecha_prevista_entrega"
SCHEDULED_TIME = "hora_prevista_entrega"
REAL_DELIVERY = "fecha_real_entrega_pdf"
SOURCE_LANGUAGE = "idioma_origen"
TARGET_LANGUAGE = "idioma_destino"
PAGE_COUNT = "num_paginas"
RATE = "tarifa_aplicada"
ORIGIN = "origen_pedido"
DRIVE_FOLDER = "drive_folder"
DRIVE_SUBFOLDERS = "drive_subfolders"

ORIGINS = ("woocommerce", "cotizacion", "manual")

EDITABLE_KEYS = (
    STATUS,
    PROVIDER_ID,
    REFERENCE,
    INTERNAL_COMMENT,
    LINGUISTIC_COMMENT,
    PAPER_DELIVERY,
    SCHEDULED_DATE,
    SCHEDULED_TIME,
    REAL_DELIVERY,
    SOURCE_LANGUAGE,
    TARGET_LANGUAGE,
    PAGE_COUNT,
    RATE,
    ORIGIN,
    DRIVE_FOLDER,
    DRIVE_SUBFOLDERS,
)
