"""Tests for API endpoints."""

from datetime import date, timedelta

import pytest

from conftest import PASSWORD, SERVICE_KEY


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        """Test health check returns healthy status."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestAuthAPI:
    """Tests for signup, login and account endpoints."""

    @pytest.mark.asyncio
    async def test_signup_provisions_profile_and_categories(self, client, signup):
        """Test signup yields a profile and the five default categories."""
        user_id, headers = await signup("a@x.com", "Alice")

        profile = await client.get("/api/profile", headers=headers)
        assert profile.status_code == 200
        assert profile.json()["id"] == user_id
        assert profile.json()["full_name"] == "Alice"

        categories = await client.get("/api/categories", headers=headers)
        assert categories.status_code == 200
        assert [c["name"] for c in categories.json()] == [
            "Finance",
            "Health",
            "Learning",
            "Personal",
            "Work",
        ]

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client, signup):
        """Test a second signup with the same email conflicts."""
        await signup("dup@example.com")
        response = await client.post(
            "/api/auth/signup",
            json={"email": "dup@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_signup_short_password(self, client):
        """Test password minimum length."""
        response = await client.post(
            "/api/auth/signup",
            json={"email": "short@example.com", "password": "123"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_login(self, client, signup):
        """Test logging in returns a working token."""
        user_id, _ = await signup("login@example.com")

        response = await client.post(
            "/api/auth/login",
            json={"email": "LOGIN@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["id"] == user_id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, signup):
        """Test bad credentials are rejected."""
        await signup("wrong@example.com")
        response = await client.post(
            "/api/auth/login",
            json={"email": "wrong@example.com", "password": "not-it"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        """Test a garbage bearer token is rejected."""
        response = await client.get(
            "/api/tasks", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_delete_account_cascades(self, client, signup):
        """Test deleting the account removes everything owned by it."""
        _, headers = await signup("gone@example.com")
        await client.post("/api/tasks", json={"title": "Bye"}, headers=headers)

        response = await client.delete("/api/auth/me", headers=headers)
        assert response.status_code == 204

        # The token still verifies but nothing is left behind it
        assert (await client.get("/api/profile", headers=headers)).status_code == 404
        assert (await client.get("/api/categories", headers=headers)).json() == []
        assert (await client.get("/api/tasks", headers=headers)).json()["total"] == 0


class TestProfileAPI:
    """Tests for profile endpoints and the repair RPC."""

    @pytest.mark.asyncio
    async def test_update_profile(self, client, signup):
        """Test patching the caller's profile."""
        _, headers = await signup("edit@example.com", "Before")
        response = await client.patch(
            "/api/profile",
            json={"full_name": "After", "preferences": {"theme": "dark"}},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "After"
        assert response.json()["preferences"] == {"theme": "dark"}

    @pytest.mark.asyncio
    async def test_profile_requires_sign_in(self, client):
        """Test anonymous callers get 401."""
        assert (await client.get("/api/profile")).status_code == 401

    @pytest.mark.asyncio
    async def test_ensure_profile_is_idempotent(self, client, signup):
        """Test calling the repair RPC for an existing profile changes nothing."""
        user_id, headers = await signup("idem@example.com", "Kept")
        for _ in range(2):
            response = await client.post(
                "/api/rpc/ensure_user_profile",
                json={"user_id": user_id, "user_name": "Replaced"},
                headers=headers,
            )
            assert response.status_code == 204

        profile = await client.get("/api/profile", headers=headers)
        assert profile.json()["full_name"] == "Kept"

    @pytest.mark.asyncio
    async def test_ensure_profile_for_someone_else(self, client, signup):
        """Test a user cannot repair another user's profile."""
        other_id, _ = await signup("victim@example.com")
        _, headers = await signup("attacker@example.com")

        response = await client.post(
            "/api/rpc/ensure_user_profile",
            json={"user_id": other_id},
            headers=headers,
        )
        assert response.status_code == 403
        assert response.json() == {"detail": "Not permitted"}

    @pytest.mark.asyncio
    async def test_ensure_profile_with_service_key(self, client, signup):
        """Test the service credential may call the repair RPC."""
        user_id, _ = await signup("service@example.com")
        response = await client.post(
            "/api/rpc/ensure_user_profile",
            json={"user_id": user_id},
            headers={"X-Service-Key": SERVICE_KEY},
        )
        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_bad_service_key(self, client):
        """Test a wrong service credential is rejected."""
        response = await client.post(
            "/api/rpc/ensure_user_profile",
            json={"user_id": "whatever"},
            headers={"X-Service-Key": "nope"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_anonymous_repair_denied(self, client, signup):
        """Test anonymous callers cannot call the repair RPC."""
        user_id, _ = await signup("anonrepair@example.com")
        response = await client.post(
            "/api/rpc/ensure_user_profile", json={"user_id": user_id}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_default_categories_twice(self, client, signup):
        """Test the seeding RPC never duplicates defaults."""
        _, headers = await signup("seedrpc@example.com")
        for _ in range(2):
            response = await client.post(
                "/api/rpc/create_default_categories", headers=headers
            )
            assert response.status_code == 204

        categories = await client.get("/api/categories", headers=headers)
        assert len(categories.json()) == 5


class TestCategoriesAPI:
    """Tests for category endpoints."""

    @pytest.mark.asyncio
    async def test_category_crud(self, client, signup):
        """Test create, update and delete of a category."""
        _, headers = await signup("cats@example.com")

        created = await client.post(
            "/api/categories", json={"name": "Hobbies"}, headers=headers
        )
        assert created.status_code == 201
        category = created.json()
        assert category["color"] == "#3B82F6"

        updated = await client.put(
            f"/api/categories/{category['id']}",
            json={"color": "#000000"},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["color"] == "#000000"
        assert updated.json()["name"] == "Hobbies"

        deleted = await client.delete(f"/api/categories/{category['id']}", headers=headers)
        assert deleted.status_code == 204
        missing = await client.get(f"/api/categories/{category['id']}", headers=headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_color(self, client, signup):
        """Test colors must be hex."""
        _, headers = await signup("color@example.com")
        response = await client.post(
            "/api/categories", json={"name": "Bad", "color": "blue"}, headers=headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_category_orphans_tasks(self, client, signup):
        """Test deleting Work keeps its tasks and drops it from statistics."""
        _, headers = await signup("orphan@example.com")
        categories = (await client.get("/api/categories", headers=headers)).json()
        work = next(c for c in categories if c["name"] == "Work")

        task_ids = []
        for i in range(3):
            response = await client.post(
                "/api/tasks",
                json={"title": f"Work {i}", "category_id": work["id"]},
                headers=headers,
            )
            task_ids.append(response.json()["id"])

        response = await client.delete(f"/api/categories/{work['id']}", headers=headers)
        assert response.status_code == 204

        for task_id in task_ids:
            task = (await client.get(f"/api/tasks/{task_id}", headers=headers)).json()
            assert task["category_id"] is None
            assert task["category"] is None

        stats = (await client.get("/api/stats/categories", headers=headers)).json()
        assert "Work" not in [s["name"] for s in stats]


class TestTasksAPI:
    """Tests for task endpoints."""

    @pytest.mark.asyncio
    async def test_create_task(self, client, signup):
        """Test creating a new task."""
        user_id, headers = await signup("tasks@example.com")
        response = await client.post(
            "/api/tasks",
            json={"title": "Test task", "priority": "high"},
            headers=headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Test task"
        assert data["priority"] == "high"
        assert data["status"] == "pending"
        assert data["user_id"] == user_id

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, client, signup):
        """Test a status outside the enumeration is rejected."""
        _, headers = await signup("enum@example.com")
        response = await client.post(
            "/api/tasks",
            json={"title": "Archived", "status": "archived"},
            headers=headers,
        )
        assert response.status_code == 422

        listing = await client.get("/api/tasks", headers=headers)
        assert listing.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_anonymous_cannot_create(self, client):
        """Test anonymous writes are denied."""
        response = await client.post("/api/tasks", json={"title": "Nope"})
        assert response.status_code == 403
        assert response.json() == {"detail": "Not permitted"}

    @pytest.mark.asyncio
    async def test_anonymous_list_is_empty(self, client, signup):
        """Test anonymous reads see no rows."""
        _, headers = await signup("visible@example.com")
        await client.post("/api/tasks", json={"title": "Secret"}, headers=headers)

        response = await client.get("/api/tasks")
        assert response.status_code == 200
        assert response.json()["items"] == []

    @pytest.mark.asyncio
    async def test_isolation_between_users(self, client, signup):
        """Test one user cannot see, change or delete another user's task."""
        _, alice = await signup("alice@example.com")
        _, bob = await signup("bob@example.com")
        task = (
            await client.post("/api/tasks", json={"title": "Alice's"}, headers=alice)
        ).json()

        assert (await client.get(f"/api/tasks/{task['id']}", headers=bob)).status_code == 404
        patched = await client.patch(
            f"/api/tasks/{task['id']}", json={"title": "Bob's"}, headers=bob
        )
        assert patched.status_code == 404
        deleted = await client.delete(f"/api/tasks/{task['id']}", headers=bob)
        assert deleted.status_code == 404
        assert (await client.get("/api/tasks", headers=bob)).json()["total"] == 0

        mine = await client.get(f"/api/tasks/{task['id']}", headers=alice)
        assert mine.json()["title"] == "Alice's"

    @pytest.mark.asyncio
    async def test_foreign_category_rejected(self, client, signup):
        """Test a task cannot be filed under another user's category."""
        _, alice = await signup("alicecat@example.com")
        _, bob = await signup("bobcat@example.com")
        bob_category = (await client.get("/api/categories", headers=bob)).json()[0]

        response = await client.post(
            "/api/tasks",
            json={"title": "Misfiled", "category_id": bob_category["id"]},
            headers=alice,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_filters_and_sorting(self, client, signup):
        """Test query parameters of the task list."""
        _, headers = await signup("filters@example.com")
        for title, priority in (("b", "low"), ("a", "high"), ("c", "medium")):
            await client.post(
                "/api/tasks", json={"title": title, "priority": priority}, headers=headers
            )

        response = await client.get(
            "/api/tasks",
            params={"sort": "title", "direction": "asc"},
            headers=headers,
        )
        assert [t["title"] for t in response.json()["items"]] == ["a", "b", "c"]

        response = await client.get(
            "/api/tasks",
            params=[("priority", "low"), ("priority", "high"), ("sort", "priority")],
            headers=headers,
        )
        assert [t["title"] for t in response.json()["items"]] == ["a", "b"]

        response = await client.get(
            "/api/tasks", params={"page": 2, "page_size": 2}, headers=headers
        )
        data = response.json()
        assert data["total"] == 3
        assert len(data["items"]) == 1

    @pytest.mark.asyncio
    async def test_bulk_endpoints(self, client, signup):
        """Test bulk status update and bulk delete."""
        _, headers = await signup("bulk@example.com")
        ids = [
            (await client.post("/api/tasks", json={"title": f"T{i}"}, headers=headers)).json()["id"]
            for i in range(3)
        ]

        response = await client.post(
            "/api/tasks/bulk/status",
            json={"task_ids": ids, "status": "completed"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"affected": 3}

        response = await client.post(
            "/api/tasks/bulk/delete",
            json={"task_ids": ids + ["missing"]},
            headers=headers,
        )
        assert response.status_code == 404
        assert (await client.get("/api/tasks", headers=headers)).json()["total"] == 3

        response = await client.post(
            "/api/tasks/bulk/delete", json={"task_ids": ids}, headers=headers
        )
        assert response.json() == {"affected": 3}


class TestStatsAPI:
    """Tests for statistics endpoints."""

    @pytest.mark.asyncio
    async def test_task_statistics(self, client, signup):
        """Test counts and the overdue flag for a past-due task."""
        _, headers = await signup("stats@example.com")
        past_due = date.today() - timedelta(days=2)
        await client.post(
            "/api/tasks",
            json={"title": "Pay bills", "due_date": past_due.isoformat()},
            headers=headers,
        )
        await client.post(
            "/api/tasks", json={"title": "Done", "status": "completed"}, headers=headers
        )

        response = await client.get("/api/stats/tasks", headers=headers)
        assert response.status_code == 200
        assert response.json() == {
            "total": 2,
            "pending": 1,
            "in_progress": 0,
            "completed": 1,
            "overdue": 1,
            "completion_rate": 50,
        }

    @pytest.mark.asyncio
    async def test_stats_require_sign_in(self, client):
        """Test anonymous callers get 401."""
        assert (await client.get("/api/stats/tasks")).status_code == 401
