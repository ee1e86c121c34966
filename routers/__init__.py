# routers/__init__.py

from .navigation import router as navigation_router
from .dashboard import router as dashboard_router
from .sites import router as sites_router
from .checklists import router as checklists_router
from .users import router as users_router
from .visits import router as visits_router
from .health import router as health_router
from .admin import router as admin_router
