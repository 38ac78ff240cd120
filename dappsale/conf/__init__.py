from dappsale.conf.get_settings import get_global_settings
from dappsale.conf.settings import SaleSettings

__all__ = ['SaleSettings', 'get_global_settings']
