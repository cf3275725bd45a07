# ===============================================================================
# STOREFRONT API - CENTRALIZED API MODULE 🚀
# ===============================================================================
#
# Structure:
#   - api/core/       → Shared API infrastructure (pagination, permissions, envelope)
#   - api/products/   → Catalog, categories and testimonials
#   - api/cart/       → Session cart
#   - api/orders/     → Checkout, order tracking and back-office orders
#   - api/newsletter/ → Subscribe, confirm, unsubscribe
#   - api/tickets/    → Contact form and back-office tickets
#   - api/settings/   → Public site settings and back-office settings
#
# Import Direction (CRITICAL):
#   api → apps.{domain}.services → apps.{domain}.models
#   Never import api modules from domain apps to avoid circular dependencies
#
