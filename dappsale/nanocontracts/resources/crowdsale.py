from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from twisted.web.resource import Resource

from dappsale.nanocontracts.blueprints import DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID
from dappsale.nanocontracts.exception import NCContractDoesNotExist
from dappsale.nanocontracts.types import Address, ContractId, Timestamp, VertexId
from dappsale.utils.api import ErrorResponse, QueryParams, Response, set_cors

if TYPE_CHECKING:
    from twisted.internet.interfaces import IReactorTime
    from twisted.web.http import Request

    from dappsale.nanocontracts.runner import Runner

logger = logging.getLogger(__name__)


class CrowdsaleStateResource(Resource):
    """ Implements a web server GET API to get the state of a crowdsale contract.

    Amounts are returned as strings; they routinely exceed what JSON clients
    can hold in a double.
    """
    isLeaf = True

    def __init__(self, runner: 'Runner', clock: 'IReactorTime') -> None:
        super().__init__()
        self.runner = runner
        self.clock = clock

    def render_GET(self, request: 'Request') -> bytes:
        request.setHeader(b'content-type', b'application/json; charset=utf-8')
        set_cors(request, 'GET')

        params = CrowdsaleStateParams.from_request(request)
        if isinstance(params, ErrorResponse):
            request.setResponseCode(400)
            return params.json_dumpb()

        try:
            nc_id = ContractId(VertexId(bytes.fromhex(params.id)))
        except ValueError:
            request.setResponseCode(400)
            return ErrorResponse(error=f'Invalid id: {params.id}').json_dumpb()

        investor: Optional[Address] = None
        if params.investor is not None:
            try:
                investor = Address(bytes.fromhex(params.investor))
            except ValueError:
                request.setResponseCode(400)
                return ErrorResponse(error=f'Invalid investor: {params.investor}').json_dumpb()

        try:
            blueprint_id = self.runner.get_blueprint_id(nc_id)
        except NCContractDoesNotExist:
            request.setResponseCode(404)
            return ErrorResponse(error=f'Contract {params.id} does not exist.').json_dumpb()

        if blueprint_id != DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID:
            request.setResponseCode(400)
            return ErrorResponse(error=f'Contract {params.id} is not a crowdsale.').json_dumpb()

        timestamp = Timestamp(params.timestamp if params.timestamp is not None else int(self.clock.seconds()))

        def call(method_name: str, *args: object) -> object:
            return self.runner.call_view_method(nc_id, method_name, *args)

        info = call('get_sale_info')
        timelocks = call('get_timelocks')

        response = CrowdsaleStateResponse(
            nc_id=params.id,
            token=info.token,
            wallet=info.wallet,
            escrow=info.escrow,
            stage=info.stage,
            rate=str(info.rate),
            cap=str(info.cap),
            goal=str(info.goal),
            wei_raised=str(info.wei_raised),
            opening_time=info.opening_time,
            closing_time=info.closing_time,
            release_time=info.release_time,
            has_closed=call('has_closed', timestamp),
            goal_reached=call('goal_reached'),
            is_finalized=info.is_finalized,
            timelocks=timelocks._asdict(),
        )
        if investor is not None:
            response.contribution = str(call('get_user_contribution', investor))
            response.is_whitelisted = call('is_whitelisted', investor)

        logger.debug('served crowdsale state for %s', params.id)
        return response.json_dumpb()


class CrowdsaleStateParams(QueryParams):
    id: str
    investor: Optional[str] = None
    timestamp: Optional[int] = None


class CrowdsaleStateResponse(Response):
    success: bool = True
    nc_id: str
    token: str
    wallet: str
    escrow: str
    stage: int
    rate: str
    cap: str
    goal: str
    wei_raised: str
    opening_time: int
    closing_time: int
    release_time: int
    has_closed: bool
    goal_reached: bool
    is_finalized: bool
    timelocks: dict[str, str]
    contribution: Optional[str] = None
    is_whitelisted: Optional[bool] = None


CrowdsaleStateResource.openapi = {
    '/crowdsale/state': {
        'x-visibility': 'public',
        'get': {
            'tags': ['nano_contracts'],
            'operationId': 'crowdsale_state',
            'summary': 'Get the state of a crowdsale contract',
            'parameters': [
                {
                    'name': 'id',
                    'in': 'query',
                    'description': 'ID of the crowdsale contract, in hex',
                    'required': True,
                    'schema': {'type': 'string'},
                },
                {
                    'name': 'investor',
                    'in': 'query',
                    'description': 'Address of an investor, in hex, to include its contribution',
                    'required': False,
                    'schema': {'type': 'string'},
                },
                {
                    'name': 'timestamp',
                    'in': 'query',
                    'description': 'Timestamp used for `has_closed`; defaults to now',
                    'required': False,
                    'schema': {'type': 'integer'},
                },
            ],
            'responses': {
                '200': {'description': 'Success'},
                '400': {'description': 'Invalid parameters'},
                '404': {'description': 'Contract not found'},
            },
        },
    },
}
