"""
Store order email templates.
"""

import html
from decimal import Decimal
from typing import Optional

from libs.common.emails.core import send_email


def _money(currency: str, amount: Decimal) -> str:
    return f"{currency} {amount:,.2f}"


async def send_order_confirmation_email(
    to_email: str,
    customer_name: str,
    order_ref: str,
    items: list[dict],  # [{"name": str, "quantity": int, "line_total": Decimal}]
    subtotal: Decimal,
    delivery_fee: Decimal,
    total: Decimal,
    currency: str,
    tracking_id: Optional[str],
    delivery_type: str,  # "pickup" or "delivery"
    delivery_address: Optional[str] = None,
    store_name: str = "Opulent Cosmetics",
) -> bool:
    """
    Send the customer confirmation once payment has been reconciled.
    """
    subject = f"Order Confirmation - {store_name}"

    items_text = "\n".join(
        f"  - {item['name']} x{item['quantity']} - {_money(currency, item['line_total'])}"
        for item in items
    )
    items_html = "".join(
        f"<tr><td>{html.escape(str(item['name']))}</td><td style='text-align:center'>{item['quantity']}</td>"
        f"<td style='text-align:right'>{_money(currency, item['line_total'])}</td></tr>"
        for item in items
    )

    fulfillment_text = (
        "Collect your order from our store."
        if delivery_type == "pickup"
        else f"Delivery Address: {delivery_address or '-'}"
    )
    fulfillment_html = html.escape(fulfillment_text)

    body = f"""Hi {customer_name},

Thank you for your order! We have received your payment for Order #{order_ref}.

Items:
{items_text}

Subtotal: {_money(currency, subtotal)}
{f"Delivery Fee: {_money(currency, delivery_fee)}" if delivery_fee > 0 else ""}
Total: {_money(currency, total)}

{fulfillment_text}
{f"Tracking ID: {tracking_id}" if tracking_id else ""}

We will notify you when it's dispatched.

{store_name}
"""

    html_body = f"""
<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1>Thank you for your order!</h1>
        <p>Hi {html.escape(customer_name)},</p>
        <p>We have received your payment for Order #{order_ref}.</p>
        <table style="width: 100%; border-collapse: collapse;">
            <thead>
                <tr><th style="text-align:left">Item</th><th>Qty</th><th style="text-align:right">Price</th></tr>
            </thead>
            <tbody>
                {items_html}
            </tbody>
        </table>
        <p>Subtotal: {_money(currency, subtotal)}</p>
        {f"<p>Delivery Fee: {_money(currency, delivery_fee)}</p>" if delivery_fee > 0 else ""}
        <p><strong>Total: {_money(currency, total)}</strong></p>
        <p>{fulfillment_html}</p>
        {f"<p>Tracking ID: {html.escape(tracking_id)}</p>" if tracking_id else ""}
        <p>We will notify you when it's dispatched.</p>
    </div>
</body>
</html>
"""

    return await send_email(to_email, subject, body, html_body)


async def send_admin_new_order_email(
    to_email: str,
    order_ref: str,
    customer_name: str,
    customer_phone: Optional[str],
    total: Decimal,
    currency: str,
    provider: str,
    tracking_id: Optional[str],
) -> bool:
    """
    Tell the shop admin a paid order is waiting to be prepared.
    """
    subject = f"New Order Received ({provider.title()})"

    body = f"""New Order #{order_ref}

Customer: {customer_name} ({customer_phone or "no phone"})
Amount: {_money(currency, total)}
Method: {provider.title()}
Tracking ID: {tracking_id or "-"}
"""

    html_body = f"""
<h1>New Order #{order_ref}</h1>
<p>Customer: {html.escape(customer_name)} ({html.escape(customer_phone or "no phone")})</p>
<p>Amount: {_money(currency, total)}</p>
<p>Method: {provider.title()}</p>
<p>Tracking ID: {html.escape(tracking_id or "-")}</p>
"""

    return await send_email(to_email, subject, body, html_body)
