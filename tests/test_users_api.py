"""Tests for the user operations of the /api dispatcher."""


class TestGetUser:
    """getUser reads one user by lower-cased email."""

    def test_missing_email(self, client):
        """Should answer 400 when the email query parameter is absent."""
        response = client.get("/api?action=getUser")

        assert response.status_code == 400
        assert response.get_json() == {"error": "Email parameter required"}

    def test_unknown_user_is_null(self, client):
        """Should return a null user rather than an error."""
        response = client.get("/api?action=getUser&email=nobody@example.com")

        assert response.status_code == 200
        assert response.get_json() == {"user": None}

    def test_lookup_is_case_insensitive(self, client, create_user):
        """Should find the same row whatever the case of the email."""
        create_user(name="Ana", email="Ana@X.com")

        lower = client.get("/api?action=getUser&email=ana@x.com").get_json()["user"]
        upper = client.get("/api?action=getUser&email=ANA@X.COM").get_json()["user"]

        assert lower is not None
        assert lower == upper
        assert lower["email"] == "ana@x.com"
        assert lower["name"] == "Ana"
        assert lower["verified"] is False


class TestCreateUser:
    """createUser is an upsert keyed by lower-cased email."""

    def test_requires_name_and_email(self, client):
        """Should reject a payload without name or email."""
        no_name = client.post("/api", json={"action": "createUser", "email": "a@b.com"})
        no_email = client.post("/api", json={"action": "createUser", "name": "Ana"})

        assert no_name.status_code == 400
        assert no_email.status_code == 400
        assert no_name.get_json() == {"error": "Name and email required"}

    def test_stores_all_fields(self, client, create_user):
        """Should persist profile and verification fields."""
        response = create_user(
            name="Ana",
            email="ana@example.com",
            birthday="1990-05-01",
            phone="555-0100",
            verification_code="123456",
            code_created_at="2025-01-10T10:00:00Z",
        )

        assert response.get_json() == {"success": True}
        user = client.get("/api?action=getUser&email=ana@example.com").get_json()["user"]
        assert user["birthday"] == "1990-05-01"
        assert user["phone"] == "555-0100"
        assert user["verification_code"] == "123456"
        assert user["code_created_at"] == "2025-01-10T10:00:00Z"
        assert user["created_at"]

    def test_second_call_updates_instead_of_duplicating(self, client, create_user, app):
        """Should keep exactly one row carrying the second name."""
        create_user(name="Ana", email="ana@example.com")
        create_user(name="Ana Maria", email="ANA@example.com")

        from tamales.models import User, db
        with app.app_context():
            rows = db.session.query(User).filter_by(email="ana@example.com").all()

        assert len(rows) == 1
        assert rows[0].name == "Ana Maria"

    def test_update_keeps_verified_flag(self, client, create_user):
        """Should not reset verification when the profile is saved again."""
        create_user(verification_code="111111")
        client.post("/api", json={"action": "verifyUser", "email": "ana@example.com", "code": "111111"})

        create_user(name="Ana B")

        user = client.get("/api?action=getUser&email=ana@example.com").get_json()["user"]
        assert user["name"] == "Ana B"
        assert user["verified"] is True


class TestUpdateVerification:
    """updateVerification replaces the code fields of an existing user."""

    def test_via_post_action(self, client, create_user):
        """Should update the code when sent as a POST action."""
        create_user(verification_code="111111")

        response = client.post("/api", json={
            "action": "updateVerification",
            "email": "Ana@Example.com",
            "verification_code": "222222",
            "code_created_at": "2025-01-11T09:00:00Z",
        })

        assert response.get_json() == {"success": True}
        user = client.get("/api?action=getUser&email=ana@example.com").get_json()["user"]
        assert user["verification_code"] == "222222"
        assert user["code_created_at"] == "2025-01-11T09:00:00Z"

    def test_via_put(self, client, create_user):
        """Should accept PUT with the action in the body."""
        create_user(verification_code="111111")

        response = client.put("/api", json={
            "action": "updateVerification",
            "email": "ana@example.com",
            "verification_code": "333333",
            "code_created_at": "2025-01-12T09:00:00Z",
        })

        assert response.status_code == 200
        user = client.get("/api?action=getUser&email=ana@example.com").get_json()["user"]
        assert user["verification_code"] == "333333"

    def test_requires_email(self, client):
        """Should answer 400 without an email."""
        response = client.post("/api", json={"action": "updateVerification", "verification_code": "1"})

        assert response.status_code == 400


class TestVerifyUser:
    """verifyUser flips the verified flag when the code matches."""

    def test_correct_code(self, client, create_user):
        """Should mark the user verified and return the updated row."""
        create_user(verification_code="654321")

        response = client.post("/api", json={"action": "verifyUser", "email": "ANA@example.com", "code": "654321"})

        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["user"]["email"] == "ana@example.com"
        assert body["user"]["verified"] == 1

    def test_numeric_code_matches(self, client, create_user):
        """Should compare codes as text so a numeric JSON value still matches."""
        create_user(verification_code="654321")

        response = client.post("/api", json={"action": "verifyUser", "email": "ana@example.com", "code": 654321})

        assert response.status_code == 200

    def test_wrong_code(self, client, create_user):
        """Should answer 400 and leave the flag unchanged."""
        create_user(verification_code="654321")

        response = client.post("/api", json={"action": "verifyUser", "email": "ana@example.com", "code": "000000"})

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid code"
        user = client.get("/api?action=getUser&email=ana@example.com").get_json()["user"]
        assert user["verified"] is False

    def test_missing_code_never_matches_empty_code(self, client, create_user):
        """Should refuse a request without code even when the user has none stored."""
        create_user()

        response = client.post("/api", json={"action": "verifyUser", "email": "ana@example.com"})

        assert response.status_code == 400
        user = client.get("/api?action=getUser&email=ana@example.com").get_json()["user"]
        assert user["verified"] is False


class TestMalformedEmail:
    """Emails that are not text are rejected before reaching the database."""

    def test_create_user(self, client):
        """Should answer 400 for a numeric email."""
        response = client.post("/api", json={"action": "createUser", "name": "Ana", "email": 123})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Name and email required"}

    def test_update_verification(self, client):
        """Should answer 400 for a list email."""
        response = client.put("/api", json={"action": "updateVerification", "email": ["a@b.com"]})

        assert response.status_code == 400

    def test_verify_user(self, client):
        """Should answer 400 for an object email."""
        response = client.post("/api", json={"action": "verifyUser", "email": {"a": 1}, "code": "1234"})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Email and code required"}

    def test_send_verification_email(self, client, email_sender):
        """Should answer 400 and send nothing."""
        response = client.post("/api", json={"action": "sendVerificationEmail", "email": 5, "code": "1234"})

        assert response.status_code == 400
        assert email_sender.sent == []
