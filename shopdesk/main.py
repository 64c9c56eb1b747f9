import logging

from fastapi import FastAPI

from shopdesk import config
from shopdesk.api.customers import router as customers_router
from shopdesk.api.installment_sales import router as installment_sales_router
from shopdesk.api.partners import router as partners_router
from shopdesk.api.phones import router as phones_router
from shopdesk.api.products import router as products_router
from shopdesk.api.repairs import router as repairs_router
from shopdesk.api.sales_orders import router as sales_orders_router
from shopdesk.api.sellable_items import router as sellable_items_router
from shopdesk.api.settings import router as settings_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Shopdesk Retail & Inventory API",
    version="0.1.0",
)

@app.get("/health")
def health_check():
    return {"status": "ok"}

app.include_router(customers_router)
app.include_router(partners_router)
app.include_router(products_router)
app.include_router(phones_router)
app.include_router(sellable_items_router)
app.include_router(sales_orders_router)
app.include_router(installment_sales_router)
app.include_router(repairs_router)
app.include_router(settings_router)
