from fastapi import APIRouter

from routers import analytics, sensor

router = APIRouter()

# include sub-routers
router.include_router(sensor.router)
router.include_router(analytics.router)
