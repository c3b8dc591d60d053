from __future__ import annotations

import pytest

from fleetfuel.core.errors import (
    AuthError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from fleetfuel.domain.audit import ActionLogRepository
from fleetfuel.domain.common import Pagination
from fleetfuel.domain.identity import (
    Credentials,
    DatabaseIdentityProvider,
    IdentityRepository,
    IdentityService,
    Role,
)
from fleetfuel.domain.identity.passwords import hash_password, verify_password
from fleetfuel.domain.requests import FuelRequestRepository, Outcome

from tests.fixtures.factories import DEFAULT_PASSWORD, make_identity, request_fields


def test_password_hash_verifies_and_is_salted() -> None:
    first = hash_password("s3cret-pass", iterations=1_000)
    second = hash_password("s3cret-pass", iterations=1_000)

    assert first != second
    assert verify_password("s3cret-pass", first)
    assert not verify_password("wrong-pass", first)
    assert not verify_password("s3cret-pass", "garbage")


def test_register_creates_identity_and_log(db) -> None:
    service = IdentityService(db)

    identity = service.register(name=" Ada ", email="Ada@Fleet.Test", password="long-enough", role="supervisor")

    assert identity.name == "Ada"
    assert identity.email == "ada@fleet.test"
    assert identity.role == Role.SUPERVISOR
    logs = ActionLogRepository(db).get_all(Pagination(), actor_id=identity.id).data
    assert [log.action for log in logs] == ["identity.registered"]


def test_register_forces_driver_when_self_assigned_roles_are_off(db) -> None:
    service = IdentityService(db, allow_self_assigned_roles=False)

    identity = service.register(name="Eve", email="eve@fleet.test", password="long-enough", role=Role.ADMIN)

    assert identity.role == Role.DRIVER


@pytest.mark.parametrize(
    "fields",
    [
        {"name": "", "email": "a@fleet.test", "password": "long-enough"},
        {"name": "A", "email": "not-an-email", "password": "long-enough"},
        {"name": "A", "email": "a@fleet.test", "password": "short"},
        {"name": "A", "email": "a@fleet.test", "password": "long-enough", "role": "captain"},
    ],
)
def test_register_rejects_bad_input(db, fields) -> None:
    with pytest.raises(ValidationError):
        IdentityService(db).register(**fields)


def test_register_rejects_duplicate_email(db, driver) -> None:
    with pytest.raises(ValidationError):
        IdentityService(db).register(name="Copy", email=driver.email.upper(), password="long-enough")


def test_managers_create_and_list_identities(db, admin, driver) -> None:
    service = IdentityService(db)

    created = service.create_identity(
        admin, name="Pump Op", email="pump@fleet.test", password="long-enough", role=Role.FUELER
    )
    fuelers = service.list_identities(admin, role=Role.FUELER)

    assert [i.id for i in fuelers.data] == [created.id]
    with pytest.raises(PermissionDeniedError):
        service.create_identity(
            driver, name="X", email="x@fleet.test", password="long-enough", role=Role.ADMIN
        )
    with pytest.raises(PermissionDeniedError):
        service.list_identities(driver)


def test_identities_can_read_themselves_only(db, driver, supervisor, director) -> None:
    service = IdentityService(db)

    assert service.get_identity(driver, driver.id).id == driver.id
    assert service.get_identity(director, driver.id).id == driver.id
    with pytest.raises(PermissionDeniedError):
        service.get_identity(supervisor, driver.id)
    with pytest.raises(NotFoundError):
        service.get_identity(director, "missing")


def test_update_identity(db, admin, driver) -> None:
    service = IdentityService(db)

    updated = service.update_identity(admin, driver.id, role="supervisor", active=False, password="new-password")

    assert updated.role == Role.SUPERVISOR
    assert updated.active is False
    found = IdentityRepository(db).get_with_password(driver.email)
    assert verify_password("new-password", found[1])


def test_update_identity_rejects_unknown_fields_and_taken_email(db, admin, driver, supervisor) -> None:
    service = IdentityService(db)

    with pytest.raises(ValidationError):
        service.update_identity(admin, driver.id, salary=1)
    with pytest.raises(ValidationError):
        service.update_identity(admin, driver.id, email=supervisor.email)
    with pytest.raises(NotFoundError):
        service.update_identity(admin, "missing", name="Nobody")


def test_delete_identity(db, admin, director, driver) -> None:
    service = IdentityService(db)

    with pytest.raises(ValidationError):
        service.delete_identity(admin, admin.id)

    service.delete_identity(director, driver.id)

    assert IdentityRepository(db).get(driver.id) is None
    with pytest.raises(NotFoundError):
        service.delete_identity(director, driver.id)


def test_delete_identity_keeps_request_history(db, approval_engine, admin, driver, supervisor, vehicle) -> None:
    request = approval_engine.submit_request(driver, **request_fields(vehicle)).request
    approval_engine.decide(request.id, supervisor, Outcome.APPROVED)
    service = IdentityService(db)

    with pytest.raises(ValidationError, match="deactivate"):
        service.delete_identity(admin, driver.id)
    with pytest.raises(ValidationError, match="deactivate"):
        service.delete_identity(admin, supervisor.id)

    requests = FuelRequestRepository(db)
    assert requests.get(request.id) is not None
    assert len(requests.get_validations(request.id)) == 1
    assert IdentityRepository(db).get(driver.id) is not None

    deactivated = service.update_identity(admin, driver.id, active=False)
    assert deactivated.active is False


def test_provider_authenticates_with_valid_credentials(db, driver) -> None:
    provider = DatabaseIdentityProvider(IdentityRepository(db))
    assert provider.current_identity() is None

    identity = provider.authenticate(Credentials(email="DRIVER@fleet.test", password=DEFAULT_PASSWORD))

    assert identity.id == driver.id
    assert provider.current_identity() == identity


def test_provider_rejects_bad_credentials_and_disabled_accounts(db, driver) -> None:
    disabled = make_identity(db, Role.FUELER, email="off@fleet.test", active=False)
    provider = DatabaseIdentityProvider(IdentityRepository(db))

    with pytest.raises(AuthError):
        provider.authenticate(Credentials(email=driver.email, password="wrong-password"))
    with pytest.raises(AuthError):
        provider.authenticate(Credentials(email="ghost@fleet.test", password=DEFAULT_PASSWORD))
    with pytest.raises(AuthError, match="disabled"):
        provider.authenticate(Credentials(email=disabled.email, password=DEFAULT_PASSWORD))
    assert provider.current_identity() is None
