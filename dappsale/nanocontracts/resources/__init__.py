from dappsale.nanocontracts.resources.crowdsale import CrowdsaleStateResource

__all__ = ['CrowdsaleStateResource']
