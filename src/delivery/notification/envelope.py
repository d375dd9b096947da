"""Branded HTML envelope for every outgoing email."""

from html import escape

BRAND_NAME = "Tradutema"
BRAND_COLOR = "#1f4e79"

_HEADER = (
    '<tr><td style="background:{color};padding:20px 32px;color:#ffffff;'
    'font-size:22px;font-weight:bold;">{brand}</td></tr>'
)

_FOOTER = (
    '<tr><td style="padding:16px 32px;background:#f4f6f8;color:#555555;font-size:12px;">'
    "{brand} · Traducciones juradas y profesionales<br>"
    '<a href="{site_url}" style="color:{color};">{site_label}</a>'
    "</td></tr>"
)

_LEGAL = (
    '<tr><td style="padding:12px 32px 24px;color:#888888;font-size:10px;line-height:1.4;">'
    "Este mensaje y sus archivos adjuntos son confidenciales y van dirigidos "
    "exclusivamente a su destinatario. Si lo ha recibido por error, le rogamos que "
    "lo comunique al remitente y lo elimine. De acuerdo con el Reglamento (UE) "
    "2016/679 (RGPD), sus datos se tratan con la finalidad de gestionar su pedido; "
    "puede ejercer sus derechos de acceso, rectificación, supresión y oposición "
    "escribiendo a {contact}."
    "</td></tr>"
)


def wrap(body_html: str, title: str, site_url: str, contact: str) -> str:
    """Full HTML document with header, body, footer and legal notice."""
    return (
        "<!DOCTYPE html>"
        '<html lang="es"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title></head>"
        '<body style="margin:0;padding:0;background:#e9edf1;font-family:Arial,Helvetica,sans-serif;">'
        '<table role="presentation" width="100%" cellpadding="0" cellspacing="0">'
        '<tr><td align="center" style="padding:24px 0;">'
        '<table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background:#ffffff;">'
        + _HEADER.format(color=BRAND_COLOR, brand=BRAND_NAME)
        + f'<tr><td style="padding:24px 32px;color:#222222;font-size:14px;line-height:1.5;">{body_html}</td></tr>'
        + _FOOTER.format(
            brand=BRAND_NAME,
            color=BRAND_COLOR,
            site_url=escape(site_url, quote=True),
            site_label=escape(site_url.split("://", 1)[-1]),
        )
        + _LEGAL.format(contact=escape(contact))
        + "</table></td></tr></table></body></html>"
    )
