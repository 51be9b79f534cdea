"""
Handler wiring. Everything is built around one injected Store.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from sleep_registry.clock import now_ms
from sleep_registry.database import Store
from sleep_registry.identity import IdentityResolver
from sleep_registry.mutations import AuthHandlers, DoctorMutations, PatientMutations
from sleep_registry.rbac import Authorizer
from sleep_registry.reports import ReportQueries
from sleep_registry.scoping import PatientQueries
from sleep_registry.sessions import SessionStore


@dataclass
class Services:
    store: Store
    sessions: SessionStore
    identity: IdentityResolver
    authz: Authorizer
    queries: PatientQueries
    reports: ReportQueries
    patients: PatientMutations
    doctors: DoctorMutations
    auth: AuthHandlers


def build_services(engine, clock: Optional[Callable[[], int]] = None) -> Services:
    clock = clock or now_ms
    store = Store(engine)
    sessions = SessionStore(store, clock)
    authz = Authorizer(store)
    queries = PatientQueries(store, authz)
    return Services(
        store=store,
        sessions=sessions,
        identity=IdentityResolver(store, sessions, clock),
        authz=authz,
        queries=queries,
        reports=ReportQueries(queries, clock),
        patients=PatientMutations(store, authz, clock),
        doctors=DoctorMutations(store, authz, clock),
        auth=AuthHandlers(store, sessions, clock),
    )
