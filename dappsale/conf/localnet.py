from dappsale.conf.settings import SaleSettings
from dappsale.nanocontracts.blueprints import BLUEPRINT_IDS

SETTINGS = SaleSettings(
    NETWORK_NAME='localnet',
    BLUEPRINTS={blueprint_id: name for name, blueprint_id in BLUEPRINT_IDS.items()},
)
