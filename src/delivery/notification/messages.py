"""Built-in delivery emails, written with the same placeholders staff templates use."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MessageTemplate:
    subject: str
    body_html: str


CLIENT_DELIVERY = MessageTemplate(
    subject="Tu traducción del pedido #{{order_id}} ya está disponible",
    body_html=(
        "<p>Hola {{customer_name}},</p>"
        "<p>Ya puedes descargar la traducción de tu pedido <strong>#{{order_id}}</strong> "
        "({{language_pair}}) desde el siguiente enlace:</p>"
        '<p><a href="{{drive_to_client_link}}">{{drive_to_client_link}}</a></p>'
        "<p>Archivos entregados: {{delivered_files}}</p>"
        "<p>Gracias por confiar en Tradutema.</p>"
    ),
)

CLIENT_DELIVERY_PAPER = MessageTemplate(
    subject=CLIENT_DELIVERY.subject,
    body_html=(
        "<p>Hola {{customer_name}},</p>"
        "<p>La traducción de tu pedido <strong>#{{order_id}}</strong> ({{language_pair}}) "
        "ya está terminada. Puedes revisar la versión digital aquí:</p>"
        '<p><a href="{{drive_to_client_link}}">{{drive_to_client_link}}</a></p>'
        "<p>Por favor, revisa el documento y confírmanos que todo es correcto. Tras tu "
        "validación enviaremos la copia en papel a:</p>"
        "<p>{{paper_shipping_address}}</p>"
        "<p>Gracias por confiar en Tradutema.</p>"
    ),
)

ADMIN_DELIVERY = MessageTemplate(
    subject="Pedido #{{order_id}}: {{provider_name}} ha entregado la traducción",
    body_html=(
        "<p>El proveedor <strong>{{provider_name}}</strong> ha subido la traducción del "
        "pedido <strong>#{{order_id}}</strong> ({{customer_name}}).</p>"
        "<p>Archivos: {{delivered_files}}</p>"
        "<p>Estado operacional: {{status}}</p>"
        "<p>Tipo de envío: {{shipping_type}}</p>"
        '<p>Carpeta para el cliente: <a href="{{drive_to_client_link}}">{{drive_to_client_link}}</a></p>'
        '<p><a href="{{admin_panel_link}}">Abrir el panel de gestión</a></p>'
    ),
)

ADMIN_INTERNAL_COMPLETION = MessageTemplate(
    subject="Pedido #{{order_id}}: traducción finalizada por {{provider_name}}",
    body_html=(
        "<p><strong>{{provider_name}}</strong> ha marcado como terminada la traducción del "
        "pedido <strong>#{{order_id}}</strong> ({{customer_name}}, {{language_pair}}).</p>"
        "<p>Estado operacional: {{status}}</p>"
        "<p>Revisa la traducción y prepara la entrega al cliente desde el panel de gestión:</p>"
        '<p><a href="{{admin_panel_link}}">{{admin_panel_link}}</a></p>'
    ),
)
