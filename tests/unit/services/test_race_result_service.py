"""
Unit tests for RaceResultService (finish / reopen / recompute)
"""

import pytest
from pymongo.errors import PyMongoError

from app.models.results import ErrorKind
from app.repositories.race_repository import RaceRepository
from app.repositories.score_repository import ScoreRepository
from app.services.race_result_service import RaceResultService


class TestFinishRace:
    """Test suite for finishing a race."""

    @pytest.mark.asyncio
    async def test_finish_scores_every_participant(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("user2", 5, ["norris", "verstappen", "leclerc"]))

        service = RaceResultService(seeded_db)

        # Act
        result = await service.finish_race(5, results, admin_user)

        # Assert
        assert result.success is True
        assert result.participants_scored == 2
        assert result.error is None

        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is True
        assert race["results"] == results

        row1 = await seeded_db["race_scores"].find_one({"_id": "user1:5"})
        assert row1["total_points"] == 78
        assert row1["perfect_predictions"] == 10

        row2 = await seeded_db["race_scores"].find_one({"_id": "user2:5"})
        assert row2["total_points"] == 5 + 5 + 7
        assert row2["details"]["bonus_p1"] == 0

    @pytest.mark.asyncio
    async def test_requires_admin(self, seeded_db, regular_user, results, race_predictions):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        service = RaceResultService(seeded_db)

        result = await service.finish_race(5, results, regular_user)

        assert result.success is False
        assert result.error.kind == ErrorKind.AUTHORIZATION
        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is False
        assert await seeded_db["race_scores"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_anonymous_caller_rejected(self, seeded_db, results):
        service = RaceResultService(seeded_db)

        result = await service.finish_race(5, results, None)

        assert result.error.kind == ErrorKind.AUTHORIZATION

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_results", [
        [],
        ["verstappen", ""],
        ["verstappen", "norris", "verstappen"],
    ])
    async def test_invalid_results_rejected(self, seeded_db, admin_user, bad_results):
        service = RaceResultService(seeded_db)

        result = await service.finish_race(5, bad_results, admin_user)

        assert result.success is False
        assert result.error.kind == ErrorKind.VALIDATION
        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is False

    @pytest.mark.asyncio
    async def test_unknown_race(self, seeded_db, admin_user, results):
        service = RaceResultService(seeded_db)

        result = await service.finish_race(99, results, admin_user)

        assert result.error.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_season_fallback(
        self, seeded_db, admin_user, results, season_predictions
    ):
        """user2 never predicted the race: their season top 10 is used."""
        order = ["bearman"] + results[:10]
        await seeded_db["season_predictions"].insert_many(season_predictions("user2", 2026, order))

        service = RaceResultService(seeded_db)

        result = await service.finish_race(5, results, admin_user)

        assert result.participants_scored == 1
        row = await seeded_db["race_scores"].find_one({"_id": "user2:5"})
        assert row["details"]["from_season"] is True
        # bearman is inactive; the top-10 cut leaves 9 active picks, all exact
        assert [p["predicted_pos"] for p in row["details"]["predictions"]] == list(range(1, 10))
        assert row["perfect_predictions"] == 9
        assert row["total_points"] == 9 * 7 + 3 + 5

    @pytest.mark.asyncio
    async def test_own_prediction_ignores_season(
        self, seeded_db, admin_user, results, race_predictions, season_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, ["leclerc"]))
        await seeded_db["season_predictions"].insert_many(season_predictions("user1", 2026, results[:10]))

        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)

        row = await seeded_db["race_scores"].find_one({"_id": "user1:5"})
        assert row["details"]["from_season"] is False
        assert len(row["details"]["predictions"]) == 1
        assert row["total_points"] == 7

    @pytest.mark.asyncio
    async def test_excluded_accounts_get_no_fallback(
        self, seeded_db, admin_user, results, season_predictions
    ):
        await seeded_db["season_predictions"].insert_many(season_predictions("admin1", 2026, results[:10]))
        await seeded_db["season_predictions"].insert_many(season_predictions("tester", 2026, results[:10]))

        service = RaceResultService(seeded_db)
        result = await service.finish_race(5, results, admin_user)

        assert result.participants_scored == 0
        assert await seeded_db["race_scores"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(
        self, seeded_db, admin_user, results, race_predictions, season_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["season_predictions"].insert_many(season_predictions("user2", 2026, results[:10]))
        service = RaceResultService(seeded_db)

        await service.finish_race(5, results, admin_user)
        first = await seeded_db["race_scores"].find({"round": 5}).sort("_id", 1).to_list(length=None)

        await service.finish_race(5, results, admin_user)
        second = await seeded_db["race_scores"].find({"round": 5}).sort("_id", 1).to_list(length=None)

        assert len(second) == 2
        assert first == second

    @pytest.mark.asyncio
    async def test_recompute_with_corrected_results_overwrites(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)

        corrected = [results[1], results[0]] + results[2:]
        result = await service.finish_race(5, corrected, admin_user)

        assert result.success is True
        rows = await seeded_db["race_scores"].find({"round": 5}).to_list(length=None)
        assert len(rows) == 1
        assert rows[0]["total_points"] == 66
        race = await seeded_db["races"].find_one({"round": 5})
        assert race["results"] == corrected

    @pytest.mark.asyncio
    async def test_recompute_removes_rows_without_prediction(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("user2", 5, results[:3]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)

        await seeded_db["predictions"].delete_many({"user_id": "user2"})
        result = await service.finish_race(5, results, admin_user)

        assert result.participants_scored == 1
        assert await seeded_db["race_scores"].find_one({"_id": "user2:5"}) is None

    @pytest.mark.asyncio
    async def test_failed_write_keeps_open_race_open(
        self, seeded_db, admin_user, results, race_predictions, monkeypatch
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("user2", 5, results[:10]))

        original_upsert = ScoreRepository.upsert

        async def flaky_upsert(self, score):
            if score.user_id == "user2":
                raise PyMongoError("write concern error")
            return await original_upsert(self, score)

        monkeypatch.setattr(ScoreRepository, "upsert", flaky_upsert)
        service = RaceResultService(seeded_db)

        # Act
        result = await service.finish_race(5, results, admin_user)

        # Assert: no partial success, previous state restored
        assert result.success is False
        assert result.participants_scored is None
        assert result.error.kind == ErrorKind.PERSISTENCE
        assert "write concern error" in result.error.message

        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is False
        assert race["results"] == []
        assert await seeded_db["race_scores"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_failed_recompute_keeps_previous_scores(
        self, seeded_db, admin_user, results, race_predictions, monkeypatch
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("user2", 5, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)
        before = await seeded_db["race_scores"].find({"round": 5}).sort("_id", 1).to_list(length=None)

        async def failing_upsert(self, score):
            raise PyMongoError("network timeout")

        monkeypatch.setattr(ScoreRepository, "upsert", failing_upsert)

        corrected = list(reversed(results))
        result = await service.finish_race(5, corrected, admin_user)

        assert result.error.kind == ErrorKind.PERSISTENCE
        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is True
        assert race["results"] == results
        after = await seeded_db["race_scores"].find({"round": 5}).sort("_id", 1).to_list(length=None)
        assert after == before

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(
        self, seeded_db, admin_user, results, race_predictions, monkeypatch
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        service = RaceResultService(seeded_db)

        async def failing_upsert(self, score):
            raise PyMongoError("primary stepped down")

        with monkeypatch.context() as m:
            m.setattr(ScoreRepository, "upsert", failing_upsert)
            failed = await service.finish_race(5, results, admin_user)

        retried = await service.finish_race(5, results, admin_user)

        assert failed.success is False
        assert retried.success is True
        assert retried.participants_scored == 1


class TestReopenRace:
    """Test suite for reopening a race."""

    @pytest.mark.asyncio
    async def test_reopen_clears_scores_and_outcome(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)

        # Act
        result = await service.reopen_race(5, admin_user)

        # Assert
        assert result.success is True
        assert await seeded_db["race_scores"].count_documents({"round": 5}) == 0
        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is False
        assert race["results"] == []

    @pytest.mark.asyncio
    async def test_finish_after_reopen_is_fresh(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)
        await service.reopen_race(5, admin_user)

        shuffled = [results[2], results[0], results[1]] + results[3:]
        await service.finish_race(5, shuffled, admin_user)

        row = await seeded_db["race_scores"].find_one({"_id": "user1:5"})
        assert row["details"]["bonus_p1"] == 0
        assert row["details"]["bonus_podium"] == 0
        assert row["total_points"] == 7 * 7 + (1 + 4) + (1 + 4) + (1 + 3)

    @pytest.mark.asyncio
    async def test_reopen_requires_admin(self, seeded_db, admin_user, regular_user, results, race_predictions):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)

        result = await service.reopen_race(5, regular_user)

        assert result.error.kind == ErrorKind.AUTHORIZATION
        assert await seeded_db["race_scores"].count_documents({"round": 5}) == 1

    @pytest.mark.asyncio
    async def test_failed_reopen_restores_scores_and_outcome(
        self, seeded_db, admin_user, results, race_predictions, monkeypatch
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("user2", 5, ["norris", "verstappen"]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)
        before = await seeded_db["race_scores"].find({"round": 5}).sort("_id", 1).to_list(length=None)

        original_set_outcome = RaceRepository.set_outcome

        async def failing_clear(self, round, completed, outcome):
            if not completed:
                raise PyMongoError("not primary")
            return await original_set_outcome(self, round, completed, outcome)

        monkeypatch.setattr(RaceRepository, "set_outcome", failing_clear)

        # Act
        result = await service.reopen_race(5, admin_user)

        # Assert: rows and outcome exactly as before the attempt
        assert result.success is False
        assert result.error.kind == ErrorKind.PERSISTENCE
        assert "not primary" in result.error.message

        after = await seeded_db["race_scores"].find({"round": 5}).sort("_id", 1).to_list(length=None)
        assert after == before
        race = await seeded_db["races"].find_one({"round": 5})
        assert race["completed"] is True
        assert race["results"] == results

    @pytest.mark.asyncio
    async def test_reopen_unknown_race(self, seeded_db, admin_user):
        service = RaceResultService(seeded_db)

        result = await service.reopen_race(42, admin_user)

        assert result.error.kind == ErrorKind.NOT_FOUND


class TestRecalculateAndRead:
    """Recalculation of every completed race and the per-race detail read."""

    @pytest.mark.asyncio
    async def test_recalculate_completed_races(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["races"].insert_one({
            "round": 6, "name": "Emilia Romagna Grand Prix", "completed": False, "results": []
        })
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("user1", 6, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)
        await service.finish_race(6, results, admin_user)

        # Simulates a stale row from an older scoring version
        await seeded_db["race_scores"].update_one({"_id": "user1:5"}, {"$set": {"total_points": 1}})

        result = await service.recalculate_completed_races(admin_user)

        assert result.success is True
        assert result.participants_scored == 2
        row = await seeded_db["race_scores"].find_one({"_id": "user1:5"})
        assert row["total_points"] == 78

    @pytest.mark.asyncio
    async def test_recalculate_requires_admin(self, seeded_db, regular_user):
        service = RaceResultService(seeded_db)

        result = await service.recalculate_completed_races(regular_user)

        assert result.error.kind == ErrorKind.AUTHORIZATION

    @pytest.mark.asyncio
    async def test_race_detail_hides_excluded_accounts(
        self, seeded_db, admin_user, results, race_predictions
    ):
        await seeded_db["predictions"].insert_many(race_predictions("user1", 5, results[:3]))
        await seeded_db["predictions"].insert_many(race_predictions("user2", 5, results[:10]))
        await seeded_db["predictions"].insert_many(race_predictions("admin1", 5, results[:10]))
        service = RaceResultService(seeded_db)
        await service.finish_race(5, results, admin_user)

        data = await service.get_race_with_results(5)

        assert data["race"].completed is True
        assert [row["user"].id for row in data["scores"]] == ["user2", "user1"]
        assert data["scores"][0]["score"].details.predictions[0].driver_id == "verstappen"

    @pytest.mark.asyncio
    async def test_race_detail_not_found(self, seeded_db):
        service = RaceResultService(seeded_db)

        assert await service.get_race_with_results(77) is None
