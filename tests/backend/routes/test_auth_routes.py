import pytest
from fastapi import HTTPException

from backend.auth import dependencies, jwt_handler
from backend.auth.passwords import verify_password
from backend.models.user import User
from backend.routes import auth_routes
from backend.schemas import AdminLoginRequest, LoginRequest, SignupRequest, UpdateProfileRequest
from backend.routes.profile_routes import update_profile


def _signup_request(**overrides) -> SignupRequest:
    fields = {
        'name': 'Amina Khan',
        'email': 'Amina@Example.com',
        'phone': '+92 300 1234567',
        'password': 'secret123',
        'confirm_password': 'secret123',
    }
    fields.update(overrides)
    return SignupRequest(**fields)


def test_signup_creates_user_with_hashed_password(request_db, skip_schema_check) -> None:
    response = auth_routes.signup(_signup_request(), db=request_db)

    user = request_db.query(User).filter(User.email == 'amina@example.com').one()
    assert user.name == 'Amina Khan'
    assert user.phone == '+923001234567'
    assert user.role == 'user'
    assert user.hashed_password != 'secret123'
    assert verify_password('secret123', user.hashed_password)

    payload = jwt_handler.decode_access_token(response.access_token)
    assert payload['sub'] == 'amina@example.com'
    assert payload['role'] == 'user'
    assert response.role == 'user'


def test_signup_rejects_duplicate_email(request_db, skip_schema_check) -> None:
    auth_routes.signup(_signup_request(), db=request_db)

    with pytest.raises(HTTPException) as exception_info:
        auth_routes.signup(_signup_request(name='Someone Else'), db=request_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Email already in use'


def test_signup_reports_conflict_when_email_is_taken_after_the_check(
    request_db, request_session_factory, skip_schema_check, monkeypatch: pytest.MonkeyPatch
) -> None:
    real_hash_password = auth_routes.hash_password

    def hash_after_competing_signup(password: str) -> str:
        # A second signup commits the same email once the duplicate check has passed.
        competing_db = request_session_factory()
        try:
            competing_db.add(
                User(
                    email='amina@example.com',
                    hashed_password=real_hash_password('other-secret'),
                    name='First Signup',
                    phone='+15550000000',
                    role='user',
                )
            )
            competing_db.commit()
        finally:
            competing_db.close()
        return real_hash_password(password)

    monkeypatch.setattr(auth_routes, 'hash_password', hash_after_competing_signup)

    with pytest.raises(HTTPException) as exception_info:
        auth_routes.signup(_signup_request(), db=request_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Email already in use'
    assert [user.name for user in request_db.query(User).all()] == ['First Signup']


def test_login_returns_token_for_valid_credentials(request_db, skip_schema_check, make_user) -> None:
    make_user(email='student@example.edu')

    response = auth_routes.login(LoginRequest(email=' STUDENT@example.edu ', password='secret123'), db=request_db)

    assert jwt_handler.decode_access_token(response.access_token)['sub'] == 'student@example.edu'


@pytest.mark.parametrize(
    ('email', 'password'),
    [
        ('student@example.edu', 'wrong-password'),
        ('nobody@example.edu', 'secret123'),
    ],
)
def test_login_rejects_bad_credentials(request_db, skip_schema_check, make_user, email: str, password: str) -> None:
    make_user(email='student@example.edu')

    with pytest.raises(HTTPException) as exception_info:
        auth_routes.login(LoginRequest(email=email, password=password), db=request_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid email or password'


def test_admin_login_issues_admin_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.core.config.ADMIN_USERNAME', 'admin')
    monkeypatch.setattr('backend.core.config.ADMIN_PASSWORD', 'admin123')

    response = auth_routes.admin_login(AdminLoginRequest(username=' admin ', password='admin123'))

    assert response.role == 'admin'
    assert dependencies.resolve_admin(response.access_token) == 'admin'


def test_admin_login_rejects_wrong_password(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.core.config.ADMIN_USERNAME', 'admin')
    monkeypatch.setattr('backend.core.config.ADMIN_PASSWORD', 'admin123')

    with pytest.raises(HTTPException) as exception_info:
        auth_routes.admin_login(AdminLoginRequest(username='admin', password='nope'))

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid admin credentials'


def test_resolve_admin_rejects_user_token() -> None:
    token = jwt_handler.create_access_token(subject='student@example.edu', role='user')

    with pytest.raises(HTTPException) as exception_info:
        dependencies.resolve_admin(token)

    assert exception_info.value.status_code == 403


def test_resolve_user_rejects_admin_token() -> None:
    token = jwt_handler.create_access_token(subject='admin', role='admin')

    with pytest.raises(HTTPException) as exception_info:
        dependencies.resolve_user(token)

    assert exception_info.value.status_code == 403


def test_decode_token_rejects_garbage() -> None:
    with pytest.raises(HTTPException) as exception_info:
        dependencies.decode_token('not-a-token')

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_update_profile_changes_name_and_phone(request_db, skip_schema_check, make_user) -> None:
    user = make_user()

    updated = update_profile(
        UpdateProfileRequest(name='  Renamed User ', phone='+1 555 000 1111'),
        current_user=user,
        db=request_db,
    )

    assert updated.name == 'Renamed User'
    assert updated.phone == '+15550001111'
    assert updated.email == 'student@example.edu'
