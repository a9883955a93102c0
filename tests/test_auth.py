"""Registration, cookie based login, profile and address book."""
import pytest

from user.models import Address, User


ADDRESS = {
    "title": "Work",
    "first_name": "Ada",
    "last_name": "Buyer",
    "phone": "5550002222",
    "address_line1": "Ataturk Blv. 10",
    "city": "Ankara",
    "postal_code": "06000",
    "country": "Turkey",
}


@pytest.mark.django_db
class TestRegister:
    def test_register_sets_cookies_and_sends_welcome(self, api_client, mailoutbox):
        response = api_client.post(
            "/api/auth/register/",
            {"email": "New@Example.com", "first_name": "New", "last_name": "Person", "password": "Str0ng-pass-42"},
            format="json",
        )

        body = response.json()
        assert response.status_code == 201
        assert body["user"]["email"] == "new@example.com"
        assert body["notification_sent"] is True
        assert "access_token" in response.cookies
        assert response.cookies["access_token"]["httponly"]
        assert len(mailoutbox) == 1

    def test_duplicate_email(self, api_client, user):
        response = api_client.post(
            "/api/auth/register/",
            {"email": "ADA@example.com", "first_name": "A", "last_name": "B", "password": "Str0ng-pass-42"},
            format="json",
        )
        assert response.status_code == 400
        assert "email" in response.json()

    def test_weak_password(self, api_client, db):
        response = api_client.post(
            "/api/auth/register/",
            {"email": "weak@example.com", "first_name": "A", "last_name": "B", "password": "123"},
            format="json",
        )
        assert response.status_code == 400
        assert not User.objects.filter(email="weak@example.com").exists()


@pytest.mark.django_db
class TestLogin:
    def test_wrong_password(self, api_client, user):
        response = api_client.post(
            "/api/auth/login/", {"email": "ada@example.com", "password": "nope"}, format="json"
        )
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid email or password"}

    def test_cookie_authenticates_later_requests(self, api_client, user):
        login = api_client.post(
            "/api/auth/login/", {"email": "ada@example.com", "password": "S3cure-pass!"}, format="json"
        )
        assert login.status_code == 200

        profile = api_client.get("/api/auth/profile/")
        assert profile.status_code == 200
        assert profile.json()["email"] == "ada@example.com"

    def test_logout_clears_cookies(self, auth_client):
        response = auth_client.post("/api/auth/logout/")
        assert response.status_code == 200
        assert response.cookies["access_token"].value == ""

    def test_profile_update_keeps_email(self, auth_client):
        response = auth_client.patch(
            "/api/auth/profile/", {"first_name": "Augusta", "email": "hijack@example.com"}, format="json"
        )
        assert response.json()["first_name"] == "Augusta"
        assert response.json()["email"] == "ada@example.com"


@pytest.mark.django_db
class TestAddresses:
    def test_first_address_becomes_default(self, auth_client):
        response = auth_client.post("/api/addresses/", ADDRESS, format="json")
        assert response.status_code == 201
        assert response.json()["is_default"] is True

    def test_single_default(self, auth_client, address):
        auth_client.post("/api/addresses/", dict(ADDRESS, is_default=True), format="json")
        assert Address.objects.filter(is_default=True).count() == 1
        address.refresh_from_db()
        assert address.is_default is False

    def test_cannot_read_others_address(self, other_client, address):
        assert other_client.get(f"/api/addresses/{address.pk}/").status_code == 404

    def test_street_joins_lines(self, address):
        assert address.street == "Istiklal Cd. 1 Daire 3"
