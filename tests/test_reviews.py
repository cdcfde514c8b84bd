import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient
from app.db.models import User


@pytest.fixture
async def employee(session_factory):
    async with session_factory() as db:
        user = User(first_name="Claire", last_name="Dubois", email="claire@example.com", current_position="Pharmacienne")
        db.add(user)
        await db.commit()
        return user


@pytest.fixture
async def reviewed(add_sessions, make_session, employee):
    now = datetime.utcnow()
    employee_id = str(employee.id)
    return await add_sessions(
        make_session(
            now - timedelta(hours=1),
            session_id="s1",
            pharmacy_rating=5,
            employee_ratings=[{"employee_id": employee_id, "rating": 5, "comment": "Parfait"}],
            client_first_name="Jean",
            client_last_name="Dupont",
            client_email="jean@example.com",
            suggestion="Ouvrir le dimanche",
        ),
        make_session(
            now - timedelta(hours=2),
            session_id="s2",
            pharmacy_rating=2,
            employee_ratings=[
                {"employee_id": employee_id, "rating": 3, "comment": None},
                {"employee_id": "removed-employee", "rating": 1, "comment": None},
            ],
        ),
        make_session(
            now - timedelta(hours=3),
            session_id="s3",
            pharmacy_rating=4,
            client_phone="0601020304",
            suggestion="Plus de parking",
            status="abandoned",
            processed=True,
        ),
    )


@pytest.mark.asyncio
async def test_clients_list(services, reviewed):
    clients, total = await services.reviews.get_clients_list()
    assert total == 2
    assert [c.session_id for c in clients] == ["s1", "s3"]

    clients, total = await services.reviews.get_clients_list(search="dupont")
    assert total == 1
    assert clients[0].email == "jean@example.com"


@pytest.mark.asyncio
async def test_pharmacy_ratings_filters(services, reviewed):
    items, total = await services.reviews.get_pharmacy_ratings()
    assert total == 3
    assert items[0].client_name == "Jean Dupont"
    assert items[1].client_name == "Anonyme"

    items, total = await services.reviews.get_pharmacy_ratings(sentiment_filter="positive")
    assert sorted(i.rating for i in items) == [4, 5]

    items, total = await services.reviews.get_pharmacy_ratings(sentiment_filter="negative")
    assert [i.rating for i in items] == [2]

    items, total = await services.reviews.get_pharmacy_ratings(rating_filter=4)
    assert total == 1

    items, total = await services.reviews.get_pharmacy_ratings(page=2, limit=2)
    assert total == 3
    assert len(items) == 1


@pytest.mark.asyncio
async def test_pharmacy_ratings_unknown_time_filter(services):
    with pytest.raises(ValueError):
        await services.reviews.get_pharmacy_ratings(time_filter="decade")


@pytest.mark.asyncio
async def test_employee_ratings_unwound(services, reviewed, employee):
    items, total = await services.reviews.get_employee_ratings()
    assert total == 3
    names = {i.employee_name for i in items}
    assert names == {"Dubois Claire", "Employé inconnu"}

    items, total = await services.reviews.get_employee_ratings(employee_id=str(employee.id))
    assert total == 2
    assert items[0].position == "Pharmacienne"

    items, total = await services.reviews.get_employee_ratings(sentiment_filter="negative")
    assert sorted(i.rating for i in items) == [1, 3]


@pytest.mark.asyncio
async def test_employee_statistics(services, reviewed, employee):
    stats = await services.reviews.get_all_employee_statistics()
    assert [s.employee_id for s in stats] == [str(employee.id), "removed-employee"]

    claire = await services.reviews.get_employee_statistics(str(employee.id))
    assert claire.total_reviews == 2
    assert claire.average_rating == 4.0
    assert claire.distribution["5"] == 1
    assert claire.score == 4.39

    top = await services.reviews.get_top_rated_employees(1)
    assert len(top) == 1
    assert await services.reviews.get_employee_statistics("nobody") is None


@pytest.mark.asyncio
async def test_suggestions(services, reviewed):
    items, total = await services.reviews.get_suggestions()
    assert total == 2
    assert [(i.suggestion, i.status) for i in items] == [
        ("Ouvrir le dimanche", "Nouveau"),
        ("Plus de parking", "Traité"),
    ]


@pytest.mark.asyncio
async def test_review_routes(auth_client: AsyncClient, reviewed):
    response = await auth_client.get("/reviews/pharmacy", params={"sentiment": "positive"})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["stats"]["total_reviews"] == 3

    response = await auth_client.get("/reviews/clients", params={"limit": 1})
    assert response.json()["total"] == 2
    assert len(response.json()["items"]) == 1

    response = await auth_client.get("/reviews/suggestions")
    assert response.status_code == 200

    response = await auth_client.get("/reviews/employees/nobody/statistics")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_suggestions_route_accepts_utc_timestamps(auth_client: AsyncClient, reviewed):
    response = await auth_client.get(
        "/reviews/suggestions",
        params={"start_date": "2020-01-01T00:00:00.000Z", "end_date": "2030-12-31T23:59:59.999Z"},
    )
    assert response.status_code == 200
    assert response.json()["total"] == 2
