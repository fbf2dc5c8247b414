import asyncio
import logging
import os
from contextlib import asynccontextmanager
from html import escape

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse

from app.core.database import Base, engine
from app.models import cart, catalog, collection, discount, order, page, shipping, tenant  # noqa: F401
from app.routers import (
    analytics,
    categories,
    collections,
    discounts,
    orders,
    pages,
    products,
    storefront,
    tenants,
)
from app.routers import shipping as shipping_routes
from shared import (
    EventPublisher,
    RequestContextLogMiddleware,
    configure_cors,
    configure_logging,
    create_health_router,
    create_redis_cache,
    load_service_config,
)

tags_metadata = [
    {"name": "Tenants", "description": "Cadastro de lojas e configurações de impostos, frete grátis e estoque."},
    {"name": "Categories", "description": "Árvore de categorias do catálogo com ordenação e movimentação."},
    {"name": "Products", "description": "Produtos, variantes e indicadores de estoque do painel da loja."},
    {"name": "Collections", "description": "Coleções manuais de produtos usadas em descontos e páginas."},
    {"name": "Discounts", "description": "Promoções automáticas, vouchers e seus códigos."},
    {"name": "Orders", "description": "Pedidos, histórico de status, pagamento e entrega."},
    {"name": "Customers", "description": "Clientes da loja com total gasto e pedidos pagos."},
    {"name": "Shipping", "description": "Zonas de entrega, tarifas e cotação de frete."},
    {"name": "Analytics", "description": "Relatórios de vendas, clientes e funil de conversão."},
    {"name": "Pages", "description": "Páginas da vitrine montadas com blocos do editor."},
    {"name": "Storefront", "description": "Rotas públicas da vitrine: catálogo, carrinho e checkout."},
]

_CONFIG = load_service_config("commerce")
_ROOT_PATH = os.getenv("APP_ROOT_PATH", "")
_LOGGER = configure_logging("commerce")
logger = logging.getLogger(__name__)

# Publisher de eventos de pedidos (somente se o Redis estiver configurado)
_EVENT_PUBLISHER = (
    EventPublisher(_CONFIG.redis.url, _CONFIG.redis.stream)
    if isinstance(_CONFIG.redis.url, str) and _CONFIG.redis.url.strip()
    else None
)
_REDIS_CACHE = create_redis_cache(_CONFIG.redis.url)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    logger.info("Starting Commerce Service...")
    for attempt in range(10):
        try:
            await asyncio.to_thread(Base.metadata.create_all, bind=engine)
            break
        except Exception as e:
            if attempt < 9:
                logger.warning(f"Database unavailable, retrying... attempt {attempt + 1}: {e}")
                await asyncio.sleep(2.0)
            else:
                logger.error("Database unavailable after 10 attempts, giving up.")
                raise

    yield

    if _REDIS_CACHE is not None:
        _REDIS_CACHE.close()
    logger.info("Commerce Service stopped")


app = FastAPI(
    title="Commerce Service",
    version="0.1.0",
    description="API da loja: catálogo, descontos, carrinho, pedidos, frete, relatórios e páginas.",
    openapi_tags=tags_metadata,
    root_path=_ROOT_PATH,
    lifespan=app_lifespan,
    docs_url=None,
    redoc_url="/redoc",
)

configure_cors(app)
app.add_middleware(RequestContextLogMiddleware, logger=_LOGGER)

app.state.config = _CONFIG
app.state.event_publisher = _EVENT_PUBLISHER
app.state.redis_cache = _REDIS_CACHE


def custom_openapi_schema():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=tags_metadata,
    )
    schema["openapi"] = "3.0.3"
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi_schema


@app.get("/docs", include_in_schema=False)
async def custom_swagger_ui_html():
    return HTMLResponse(f"""
    <!DOCTYPE html>
    <html>
    <head>
        <link type="text/css" rel="stylesheet" href="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui.css">
        <title>{escape(app.title)} - Swagger UI</title>
    </head>
    <body>
        <div id="swagger-ui"></div>
        <script src="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
        <script>
        const ui = SwaggerUIBundle({{
            url: window.location.pathname.replace(/\\/docs$/, '') + '/openapi.json',
            dom_id: '#swagger-ui',
            presets: [
                SwaggerUIBundle.presets.apis,
                SwaggerUIBundle.SwaggerUIStandalonePreset
            ],
            layout: "BaseLayout",
            deepLinking: true
        }})
        </script>
    </body>
    </html>
    """)


app.include_router(
    create_health_router(
        service_name="commerce",
        database_engine=engine,
        redis_client=_REDIS_CACHE,
    )
)

app.include_router(tenants.router, prefix="/tenants")
app.include_router(categories.router, prefix="/categories")
app.include_router(products.router, prefix="/products")
app.include_router(collections.router, prefix="/collections")
app.include_router(discounts.router, prefix="/discounts")
app.include_router(orders.router, prefix="/orders")
app.include_router(orders.customers_router, prefix="/customers")
app.include_router(shipping_routes.router, prefix="/shipping")
app.include_router(analytics.router, prefix="/analytics")
app.include_router(pages.router, prefix="/pages")
app.include_router(storefront.router, prefix="/store")


@app.get("/")
def root():
    return {
        "service": "commerce",
        "status": "ok",
        "docs_url": "/docs",
        "config": {
            "redis_stream": _CONFIG.redis.stream,
            "cache_enabled": _REDIS_CACHE is not None,
        },
    }
