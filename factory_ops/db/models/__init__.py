"""
ORM mappings of the remote tables used by the views.

Importing this package registers every mapped class with the Base metadata.
"""

from .production import (  # noqa: F401
    WorkOrder,
    WorkOrderStageHistory,
    ProductionBatch,
)
from .quality import (  # noqa: F401
    QCRecord,
    NCR,
    HourlyQCCheck,
)
from .external import (  # noqa: F401
    ExternalPartner,
    ExternalMove,
)
from .logistics import (  # noqa: F401
    Carton,
    Dispatch,
    FinishedGoodsInventory,
)
from .finance import Invoice  # noqa: F401
from .procurement import RawPurchaseOrder  # noqa: F401
from .sales import SalesOrder  # noqa: F401
from .she import (  # noqa: F401
    SheIncident,
    Capa,
    EnvironmentalMetric,
)
from .notifications import (  # noqa: F401
    Notification,
    UserRole,
)

__all__ = [
    "WorkOrder",
    "WorkOrderStageHistory",
    "ProductionBatch",
    "QCRecord",
    "NCR",
    "HourlyQCCheck",
    "ExternalPartner",
    "ExternalMove",
    "Carton",
    "Dispatch",
    "FinishedGoodsInventory",
    "Invoice",
    "RawPurchaseOrder",
    "SalesOrder",
    "SheIncident",
    "Capa",
    "EnvironmentalMetric",
    "Notification",
    "UserRole",
]
