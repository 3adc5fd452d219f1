"""
Order formatting: fetches an order live and renders a readable message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from shared.errors import ShopApiException
from shared.logging import get_logger

from service_catalog.app.adapters.shop_client import ShopApiClient
from service_catalog.app.domain.models import OrderInfo, OrderLine, as_list, format_number


ORDER_FALLBACK_MESSAGE = "Could not retrieve order details"

ORDER_MESSAGE_TEMPLATE = """Order #{order_id}
Total: {total}
Payment method: {payment_method}
Order link: {order_url}

Customer:
- Name: {name}
- Phone: {phone}
- Email: {email}
- {contact_label}: {contact}
- Company: {company}

Order notes:
{notes}

Products:
{products}"""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class OrderFormatter:
    """Builds :class:`OrderInfo` from an order and renders it as text."""

    def __init__(
        self,
        client: ShopApiClient,
        *,
        admin_url: str,
        product_link_template: str,
        contact_field_id: Optional[str] = None,
        contact_field_label: str = "Telegram",
        currency: str = "USD",
        product_code_prefix: str = "px-",
    ):
        self.client = client
        self.admin_url = admin_url
        self.product_link_template = product_link_template
        self.contact_field_id = contact_field_id
        self.contact_field_label = contact_field_label
        self.currency = currency
        self.product_code_prefix = product_code_prefix
        self.logger = get_logger("orders.formatter")

    def external_id(self, product_code: str) -> str:
        if self.product_code_prefix and product_code.startswith(self.product_code_prefix):
            return product_code[len(self.product_code_prefix):]
        return product_code

    def product_link(self, product_code: str) -> str:
        return self.product_link_template.replace("{id}", self.external_id(product_code))

    def order_url(self, order_id: Any) -> str:
        return f"{self.admin_url}?dispatch=orders.details&order_id={order_id}"

    def format_line(self, line: OrderLine) -> str:
        parts = [f"- {format_number(line.subtotal)} {self.currency}"]
        if line.amount > 1:
            parts.append(f" ({format_number(line.base_price)} x {line.amount})")
        parts.append(f' - <a href="{self.product_link(line.product_code)}">{line.product}</a>')
        return "".join(parts)

    def build_info(self, order: Dict[str, Any]) -> Optional[OrderInfo]:
        if not order:
            return None

        payment_info = order.get("payment_info")
        phone = order.get("phone")
        if not phone and isinstance(payment_info, dict):
            phone = payment_info.get("customer_phone")

        contact = ""
        fields = order.get("fields")
        if self.contact_field_id and isinstance(fields, dict):
            contact = _text(fields.get(self.contact_field_id))

        payment_method = order.get("payment_method")
        payment_label = payment_method.get("payment") if isinstance(payment_method, dict) else None

        name = " ".join(
            part for part in (_text(order.get("firstname")), _text(order.get("lastname"))) if part
        )
        lines = [
            OrderLine.from_dict(item)
            for item in as_list(order.get("products"))
            if isinstance(item, dict)
        ]

        return OrderInfo(
            order_id=order.get("order_id"),
            total=format_number(order.get("total")),
            name=name,
            phone=_text(phone),
            email=_text(order.get("email")),
            contact=contact,
            company=_text(order.get("company")),
            notes=_text(order.get("notes")),
            order_url=self.order_url(order.get("order_id")),
            payment_method=_text(payment_label),
            products="\n".join(self.format_line(line) for line in lines),
        )

    def render(self, info: Optional[OrderInfo]) -> str:
        if info is None:
            return ORDER_FALLBACK_MESSAGE
        return ORDER_MESSAGE_TEMPLATE.format(
            order_id=info.order_id,
            total=info.total,
            payment_method=info.payment_method,
            order_url=info.order_url,
            name=info.name,
            phone=info.phone,
            email=info.email,
            contact_label=self.contact_field_label,
            contact=info.contact,
            company=info.company,
            notes=info.notes,
            products=info.products,
        )

    async def format_order(self, order_id: int) -> str:
        """Fetch an order (never cached) and render it; failures yield the fallback text."""
        try:
            order = await self.client.get_order(order_id)
        except ShopApiException as exc:
            self.logger.error("Order fetch failed", order_id=order_id, error=exc.message)
            return ORDER_FALLBACK_MESSAGE

        try:
            info = self.build_info(order)
        except Exception as exc:
            self.logger.error("Order payload could not be formatted", order_id=order_id, error=str(exc), exc_info=True)
            return ORDER_FALLBACK_MESSAGE

        if info is None:
            self.logger.warning("Order payload empty", order_id=order_id)
        return self.render(info)
