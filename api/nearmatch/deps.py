from dataclasses import dataclass

from fastapi import Request

from . import config
from .deadline import Deadline
from .repo import UserRepository
from .services.ledger import ActionLedger
from .services.locator import GeoCandidateLocator, discovery_flow, nearby_flow
from .services.match_engine import MatchEngine


@dataclass
class Services:
    users: UserRepository
    ledger: ActionLedger
    engine: MatchEngine
    locator: GeoCandidateLocator
    request_timeout_seconds: float


def build_services(session_factory, *, request_timeout_seconds: float | None = None) -> Services:
    users = UserRepository(session_factory)
    ledger = ActionLedger(
        session_factory,
        max_attempts=config.LEDGER_MAX_ATTEMPTS,
        matched_at_policy=config.MATCHED_AT_POLICY,
    )
    engine = MatchEngine(
        ledger,
        users,
        default_limit=config.ACTION_LIST_DEFAULT_LIMIT,
        max_limit=config.ACTION_LIST_MAX_LIMIT,
    )
    locator = GeoCandidateLocator(
        users,
        discovery=discovery_flow(config.DISCOVERY_RADIUS_KM, config.DISCOVERY_ORDER),
        nearby=nearby_flow(config.NEARBY_RADIUS_KM, config.NEARBY_ORDER),
        default_page_size=config.DEFAULT_PAGE_SIZE,
        max_page_size=config.MAX_PAGE_SIZE,
    )
    timeout = config.REQUEST_TIMEOUT_SECONDS if request_timeout_seconds is None else request_timeout_seconds
    return Services(users=users, ledger=ledger, engine=engine, locator=locator, request_timeout_seconds=timeout)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_match_engine(request: Request) -> MatchEngine:
    return get_services(request).engine


def get_locator(request: Request) -> GeoCandidateLocator:
    return get_services(request).locator


def get_users(request: Request) -> UserRepository:
    return get_services(request).users


def request_deadline(request: Request) -> Deadline:
    return Deadline.after(get_services(request).request_timeout_seconds)
