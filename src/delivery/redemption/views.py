"""HTML pages of the public delivery endpoint.

Providers see these pages in a browser, so every page is a complete
Spanish HTML document. Nothing internal (ids of remote files, exception
text, paths) is ever rendered.
"""

from html import escape

from delivery.order.attributes import language_pair
from delivery.redemption.workflow import RedemptionContext, RedemptionOutcome
from delivery.status.status import OperationalStatus, label

_STYLE = (
    "body{margin:0;background:#e9edf1;font-family:Arial,Helvetica,sans-serif;color:#222}"
    "main{max-width:640px;margin:40px auto;background:#fff;padding:32px;border-radius:6px}"
    "h1{color:#1f4e79;font-size:22px;margin-top:0}"
    ".error{background:#fdecea;color:#8a1c1c;padding:12px 16px;border-radius:4px}"
    ".ok{background:#e7f4ea;color:#1d5e2c;padding:12px 16px;border-radius:4px}"
    "dl{display:grid;grid-template-columns:max-content 1fr;gap:6px 16px}"
    "dt{font-weight:bold}"
    "button{background:#1f4e79;color:#fff;border:0;padding:10px 20px;border-radius:4px;font-size:15px}"
)


def page(title: str, content: str) -> str:
    return (
        "<!DOCTYPE html>"
        '<html lang="es"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        '<meta name="robots" content="noindex, nofollow">'
        f"<title>{escape(title)} · Tradutema</title><style>{_STYLE}</style></head>"
        f"<body><main><h1>{escape(title)}</h1>{content}</main></body></html>"
    )


def _order_summary(context: RedemptionContext) -> str:
    source, target = language_pair(context.order)
    rows = [
        ("Pedido", f"#{context.order.id}"),
        ("Idiomas", " → ".join(part for part in (source, target) if part) or "—"),
        ("Proveedor", context.provider.name if context.provider else "—"),
        ("Estado", label(context.order.operational_status)),
    ]
    return "<dl>" + "".join(f"<dt>{escape(name)}</dt><dd>{escape(value)}</dd>" for name, value in rows) + "</dl>"


def upload_form(context: RedemptionContext, action: str, error: str | None = None) -> str:
    """Multi-file form for external providers, confirmation button for internal ones."""
    notice = f'<p class="error">{escape(error)}</p>' if error else ""

    if context.is_internal:
        form = (
            f'<form method="post" action="{escape(action, quote=True)}">'
            "<p>Confirma que la traducción de este pedido está terminada. "
            "La oficina recibirá un aviso para preparar la entrega al cliente.</p>"
            '<button type="submit">Confirmar traducción finalizada</button>'
            "</form>"
        )
    else:
        form = (
            f'<form method="post" enctype="multipart/form-data" action="{escape(action, quote=True)}">'
            "<p>Adjunta los archivos traducidos. Se entregarán directamente al cliente, "
            "así que comprueba que son las versiones definitivas.</p>"
            '<p><input type="file" name="files" multiple required></p>'
            '<button type="submit">Entregar archivos</button>'
            "</form>"
        )

    return page("Entrega de traducción", notice + _order_summary(context) + form)


def success(outcome: RedemptionOutcome) -> str:
    if outcome.internal:
        message = "Gracias. Hemos registrado que la traducción está terminada."
    elif outcome.status == OperationalStatus.AWAITING_CLIENT_VALIDATION:
        message = (
            "Archivos recibidos. El cliente revisará la traducción antes del envío de la copia en papel."
        )
    else:
        message = "Archivos recibidos y entregados al cliente. Gracias."

    files = ""
    if outcome.files:
        files = "<ul>" + "".join(f"<li>{escape(name)}</li>" for name in outcome.files) + "</ul>"

    return page("Entrega completada", f'<p class="ok">{escape(message)}</p>{files}')


def already_used() -> str:
    return page(
        "Enlace ya utilizado",
        '<p class="ok">Este enlace ya se ha utilizado y la entrega de este pedido está registrada.</p>'
        "<p>Si necesitas enviar una versión corregida, solicita un nuevo enlace a la oficina.</p>",
    )


def error(message: str, title: str = "No se ha podido completar la entrega") -> str:
    return page(title, f'<p class="error">{escape(message)}</p>')
