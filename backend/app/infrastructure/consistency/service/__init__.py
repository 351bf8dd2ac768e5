from app.infrastructure.consistency.service.impl import ConsistencyServiceImpl
from app.infrastructure.consistency.service.interface import ActionConsistency, ConsistencyService

__all__ = ["ActionConsistency", "ConsistencyService", "ConsistencyServiceImpl"]
