"""
CS-Cart catalog tool server.

Exposes the product, feature and order services as MCP tools over stdio.
"""

import asyncio
import json
import sys
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

import httpx
import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from shared.config import ShopConfig, get_config
from shared.errors import ConfigurationError, UnknownToolError, ValidationError
from shared.logging import clear_context, configure_logging, get_logger, set_request_id, set_tool_context

from service_catalog.app.adapters.shop_client import ShopApiClient, ShopCredentials
from service_catalog.app.caching.persistent_cache import PersistentCache
from service_catalog.app.caching.variant_store import VariantStore
from service_catalog.app.catalog.enrichment import ProductEnricher
from service_catalog.app.catalog.features import FeatureCatalogService
from service_catalog.app.catalog.products import ProductCatalogService
from service_catalog.app.catalog.variants import FeatureVariantResolver
from service_catalog.app.orders.formatter import OrderFormatter


SERVER_NAME = "cscart-server"


class GetProductInput(BaseModel):
    """Arguments for cscart_get_product."""
    productId: int = Field(..., gt=0, description="ID of the product to retrieve")


class GetOrderInput(BaseModel):
    """Arguments for cscart_get_order."""
    orderId: int = Field(..., gt=0, description="ID of the order to retrieve")


class EmptyInput(BaseModel):
    """Tools that take no arguments."""


class SearchProductsInput(BaseModel):
    """Arguments for cscart_search_products."""
    name: Optional[str] = Field(None, description="Product name to search for")
    code: Optional[str] = Field(None, description="Product code (product_code) to search for")


@dataclass
class CatalogServices:
    """Everything the tools need, wired around one shop."""

    products: ProductCatalogService
    features: FeatureCatalogService
    enricher: ProductEnricher
    orders: OrderFormatter

    def load_caches(self) -> None:
        self.products.cache.load()
        self.features.cache.load()


def build_services(
    config: ShopConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Callable[[], float] = time.time,
) -> CatalogServices:
    """Wire clients, caches and services from configuration."""
    client = ShopApiClient(
        ShopCredentials(config.shop_url, config.email, config.api_key),
        timeout=config.request_timeout,
        transport=transport,
    )
    resolver = FeatureVariantResolver(client, VariantStore(config.feature_variants_dir))
    features = FeatureCatalogService(
        client,
        resolver,
        PersistentCache(config.features_cache_file, name="features", clock=clock),
        cache_ttl=config.cache_time,
        page_size=config.page_size,
    )
    products = ProductCatalogService(
        client,
        PersistentCache(config.products_cache_file, name="products", clock=clock),
        cache_ttl=config.cache_time,
        page_size=config.page_size,
    )
    orders = OrderFormatter(
        client,
        admin_url=config.admin_url,
        product_link_template=config.product_link_template,
        contact_field_id=config.telegram_field,
        contact_field_label=config.contact_field_label,
        currency=config.currency,
        product_code_prefix=config.product_code_prefix,
    )
    return CatalogServices(
        products=products,
        features=features,
        enricher=ProductEnricher(client, features),
        orders=orders,
    )


@dataclass(frozen=True)
class ToolSpec:
    """One exposed tool."""

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[Any], Awaitable[Any]]
    returns_text: bool = False

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_model.model_json_schema(),
        )


def to_json_text(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


class CatalogToolService:
    """Tool registry and dispatcher bound to an MCP server."""

    def __init__(self, services: CatalogServices, name: str = SERVER_NAME):
        self.services = services
        self.logger = get_logger("catalog.tools")
        self.tools: Dict[str, ToolSpec] = {spec.name: spec for spec in self._tool_specs()}
        self.server = Server(name)
        self._setup_handlers()

    def _tool_specs(self) -> List[ToolSpec]:
        return [
            ToolSpec(
                name="cscart_get_product",
                description=(
                    "Fetch a CS-Cart product by its ID. CS-Cart is a shop. Returns product with all "
                    "features and variants. Product fields are located at `product_features`."
                ),
                input_model=GetProductInput,
                handler=lambda args: self.services.enricher.get_product(args.productId),
            ),
            ToolSpec(
                name="cscart_get_products",
                description="Fetch all CS-Cart products.",
                input_model=EmptyInput,
                handler=lambda args: self.services.products.get_products(),
            ),
            ToolSpec(
                name="cscart_get_features",
                description=(
                    "Fetch all CS-Cart product features. Returns array of features with variants "
                    "(if present). Feature is a product attribute."
                ),
                input_model=EmptyInput,
                handler=lambda args: self.services.features.get_features_payload(),
            ),
            ToolSpec(
                name="cscart_search_products",
                description=(
                    "Search CS-Cart products by name (product) and code (product_code). Returns array of "
                    "products, without features. Use cscart_get_product to get full product data."
                ),
                input_model=SearchProductsInput,
                handler=lambda args: self.services.products.search(name=args.name, code=args.code),
            ),
            ToolSpec(
                name="cscart_get_order",
                description="Fetch a CS-Cart order by its ID. Returns a formatted order summary.",
                input_model=GetOrderInput,
                handler=lambda args: self.services.orders.format_order(args.orderId),
                returns_text=True,
            ),
        ]

    def _setup_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
            return await self.call_tool(name, arguments)

    def list_tools(self) -> List[types.Tool]:
        return [spec.to_tool() for spec in self.tools.values()]

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
        """Run a tool and return its text payload; raises on failure."""
        spec = self.tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        try:
            args = spec.input_model.model_validate(arguments or {})
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid arguments for {name}: {exc.errors()[0]['msg']}",
                details={"errors": [error["msg"] for error in exc.errors()]},
            )
        result = await spec.handler(args)
        if spec.returns_text:
            return str(result)
        return to_json_text(result)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        """Tool boundary: every failure becomes an error-flagged text result."""
        set_request_id()
        set_tool_context(name)
        start = time.perf_counter()
        try:
            text = await self.dispatch(name, arguments)
        except Exception as exc:
            self.logger.error("Tool call failed", error=str(exc), error_type=type(exc).__name__)
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=f"Error: {exc}")],
                isError=True,
            )
        finally:
            duration = time.perf_counter() - start
            self.logger.info("Tool call finished", duration=round(duration, 3))
            clear_context()

        return types.CallToolResult(
            content=[types.TextContent(type="text", text=text)],
            isError=False,
        )

    async def run(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def main() -> None:
    try:
        config = get_config()
    except ConfigurationError as exc:
        configure_logging("catalog", "info", None)
        get_logger("catalog.main").error("Configuration error", error=exc.message, **exc.details)
        sys.exit(1)

    configure_logging("catalog", config.log_level, config.log_file or None)
    logger = get_logger("catalog.main")

    services = build_services(config)
    services.load_caches()
    service = CatalogToolService(services)

    logger.info("Starting CS-Cart tool server", shop_url=config.shop_url, cache_time=config.cache_time)
    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down CS-Cart tool server")


if __name__ == "__main__":
    main()
