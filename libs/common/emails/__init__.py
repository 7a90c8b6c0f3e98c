"""
Storefront email package.

Modules:
- core: send_email over SMTP (logs and returns False on any delivery problem)
- store: order confirmation and admin new-order templates
"""
