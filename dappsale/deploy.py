"""Deployment of the token and its crowdsale.

Creates the token, pauses it, creates the crowdsale with the reference
parameters of the active settings and hands token ownership to the
crowdsale. Times are offsets from the deployment time.
"""

import argparse
import hashlib
import json
import logging
import time
from typing import NamedTuple, Optional, Sequence

from dappsale.conf import SaleSettings, get_global_settings
from dappsale.nanocontracts.blueprints import (
    DAPP_TOKEN_BLUEPRINT_ID,
    DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID,
    get_blueprint_classes,
)
from dappsale.nanocontracts.context import Context
from dappsale.nanocontracts.runner import Runner
from dappsale.nanocontracts.types import Address, ContractId, Timestamp, VertexId

logger = logging.getLogger(__name__)


class Deployment(NamedTuple):
    token: ContractId
    crowdsale: ContractId
    escrow: ContractId
    opening_time: Timestamp
    closing_time: Timestamp
    release_time: Timestamp


def make_contract_id(deployer: Address, label: str, timestamp: int) -> ContractId:
    digest = hashlib.sha256(deployer + label.encode('utf-8') + timestamp.to_bytes(8, 'big')).digest()
    return ContractId(VertexId(digest))


def register_blueprints(runner: Runner) -> None:
    for blueprint_id, blueprint_class in get_blueprint_classes().items():
        runner.register_blueprint_class(blueprint_id, blueprint_class)


def deploy_crowdsale(
    runner: Runner,
    deployer: Address,
    now: int,
    *,
    wallet: Optional[Address] = None,
    founders_fund: Optional[Address] = None,
    foundation_fund: Optional[Address] = None,
    partners_fund: Optional[Address] = None,
    settings: Optional[SaleSettings] = None,
) -> Deployment:
    """Deploy a paused token and a crowdsale owning it.

    Unset wallet and reserve funds default to the deployer.
    """
    if settings is None:
        settings = get_global_settings()
    register_blueprints(runner)

    wallet = wallet or deployer
    opening_time = Timestamp(now + settings.OPENING_DELAY)
    closing_time = Timestamp(opening_time + settings.SALE_DURATION)
    release_time = Timestamp(closing_time + settings.RELEASE_DELAY)

    ctx = Context([], deployer, now)

    token_id = make_contract_id(deployer, 'token', now)
    runner.create_contract(
        token_id,
        DAPP_TOKEN_BLUEPRINT_ID,
        ctx,
        settings.TOKEN_NAME,
        settings.TOKEN_SYMBOL,
        settings.TOKEN_DECIMALS,
    )
    runner.call_public_method(token_id, 'pause', ctx)
    logger.info('deployed token %s (%s)', token_id.hex(), settings.TOKEN_SYMBOL)

    crowdsale_id = make_contract_id(deployer, 'crowdsale', now)
    runner.create_contract(
        crowdsale_id,
        DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID,
        ctx,
        settings.PRE_SALE_RATE,
        settings.PUBLIC_SALE_RATE,
        wallet,
        token_id,
        settings.SALE_CAP,
        opening_time,
        closing_time,
        settings.SALE_GOAL,
        founders_fund or deployer,
        foundation_fund or deployer,
        partners_fund or deployer,
        release_time,
    )
    runner.call_public_method(token_id, 'transfer_ownership', ctx, crowdsale_id)

    escrow_id = runner.get_readonly_contract(crowdsale_id).escrow
    logger.info(
        'deployed crowdsale %s on %s, open from %d to %d',
        crowdsale_id.hex(), settings.NETWORK_NAME, opening_time, closing_time,
    )
    return Deployment(
        token=token_id,
        crowdsale=crowdsale_id,
        escrow=escrow_id,
        opening_time=opening_time,
        closing_time=closing_time,
        release_time=release_time,
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='dappsale-deploy', description='Deploy a token crowdsale')
    parser.add_argument('--deployer', required=True, help='Deployer address, in hex')
    parser.add_argument('--wallet', help='Wallet receiving the proceeds, in hex (default: deployer)')
    parser.add_argument('--founders-fund', help='Founders fund address, in hex (default: deployer)')
    parser.add_argument('--foundation-fund', help='Foundation fund address, in hex (default: deployer)')
    parser.add_argument('--partners-fund', help='Partners fund address, in hex (default: deployer)')
    parser.add_argument('--now', type=int, help='Deployment timestamp (default: current time)')
    parser.add_argument('--listen', type=int, help='Serve the crowdsale state API on this port')
    return parser


def _address(value: Optional[str]) -> Optional[Address]:
    return Address(bytes.fromhex(value)) if value else None


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s][%(name)s] %(message)s')

    try:
        deployer = Address(bytes.fromhex(args.deployer))
        wallet = _address(args.wallet)
        founders_fund = _address(args.founders_fund)
        foundation_fund = _address(args.foundation_fund)
        partners_fund = _address(args.partners_fund)
    except ValueError as e:
        parser.error(f'invalid address: {e}')

    runner = Runner()
    deployment = deploy_crowdsale(
        runner,
        deployer,
        args.now if args.now is not None else int(time.time()),
        wallet=wallet,
        founders_fund=founders_fund,
        foundation_fund=foundation_fund,
        partners_fund=partners_fund,
    )
    print(json.dumps({
        'token': deployment.token.hex(),
        'crowdsale': deployment.crowdsale.hex(),
        'escrow': deployment.escrow.hex(),
        'opening_time': deployment.opening_time,
        'closing_time': deployment.closing_time,
        'release_time': deployment.release_time,
    }, indent=2))

    if args.listen is not None:
        _serve(runner, args.listen)


def _serve(runner: Runner, port: int) -> None:
    from twisted.internet import reactor
    from twisted.web.resource import Resource
    from twisted.web.server import Site

    from dappsale.nanocontracts.resources import CrowdsaleStateResource

    root = Resource()
    api = Resource()
    crowdsale = Resource()
    root.putChild(b'v1a', api)
    api.putChild(b'crowdsale', crowdsale)
    crowdsale.putChild(b'state', CrowdsaleStateResource(runner, reactor))

    reactor.listenTCP(port, Site(root))
    logger.info('serving crowdsale state on port %d', port)
    reactor.run()


if __name__ == '__main__':
    main()
