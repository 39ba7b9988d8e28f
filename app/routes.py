import logging

from fastapi import APIRouter

from app.vars import BASE_PATH, HOST_PAGE_ENABLED, PROXY_ENDPOINT
from .fetch_proxy.route import router as fetch_proxy_router
from .bridge.host_page import router as host_page_router

router = APIRouter()

logger = logging.getLogger("uvicorn.error")

logger.info(f"Serving fetch proxy at {PROXY_ENDPOINT}")
router.include_router(fetch_proxy_router)

if HOST_PAGE_ENABLED:
    logger.info(f"Serving host page at {BASE_PATH}/")
    router.include_router(host_page_router)
else:
    logger.info("Host page disabled")
