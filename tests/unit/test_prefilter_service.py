"""Unit tests for the keyword pre-filter (scoring and tier partition)."""

import pytest

from services.prefilter_service import PreFilterService


@pytest.fixture
def prefilter() -> PreFilterService:
    return PreFilterService()


class TestScore:
    """Tests for PreFilterService.score."""

    @pytest.mark.unit
    def test_distribution_terms_dominate(self, prefilter, make_video):
        video = make_video(title="Free Fortnite Aimbot Download 2024", description="link in discord")

        result = prefilter.score(video)

        # aimbot, discord (+1 each); download, free, link, discord (+3 each); free+download title (+3)
        assert result.infringement_score == 17
        assert result.legitimate_score == 0
        assert result.priority == result.infringement_score
        assert result.should_analyze is True
        assert result.infringement_probability == pytest.approx(1.0)

    @pytest.mark.unit
    def test_legitimate_video_scores_zero(self, prefilter, make_video):
        result = prefilter.score(make_video(title="Fortnite Pro Settings Tutorial"))

        assert result.infringement_score == 0
        assert result.legitimate_score == 2
        assert result.infringement_probability == 0.0
        assert result.should_analyze is False

    @pytest.mark.unit
    def test_neutral_video_is_analyzed(self, prefilter, make_video):
        """No signal either way still qualifies for analysis."""
        result = prefilter.score(make_video(title="my day at the lake"))

        assert result.infringement_score == 0
        assert result.legitimate_score == 0
        assert result.should_analyze is True

    @pytest.mark.unit
    def test_year_and_working_bonus(self, prefilter, make_video):
        plain = prefilter.score(make_video(title="apex hack"))
        working = prefilter.score(make_video(title="apex hack 2025 still working"))

        assert working.infringement_score - plain.infringement_score == 3

    @pytest.mark.unit
    def test_messaging_invite_bonus(self, prefilter, make_video):
        plain = prefilter.score(make_video(title="apex hack", description="t.me channel"))
        invite = prefilter.score(make_video(title="apex hack", description="t.me/abc channel"))

        assert invite.infringement_score - plain.infringement_score == 2

    @pytest.mark.unit
    def test_short_duration_penalty_floors_at_zero(self, prefilter, make_video):
        long_video = prefilter.score(make_video(title="apex hack", length_seconds=600))
        short_video = prefilter.score(make_video(title="apex hack", length_seconds=40))

        assert long_video.infringement_score == 1
        assert short_video.infringement_score == 0

    @pytest.mark.unit
    def test_unknown_duration_is_not_penalized(self, prefilter, make_video):
        result = prefilter.score(make_video(title="apex hack", length_seconds=0))

        assert result.infringement_score == 1


class TestPartition:
    """Tests for PreFilterService.partition."""

    @pytest.mark.unit
    def test_scenario_tiers(self, prefilter, make_video):
        suspicious = make_video("bad", title="Free Fortnite Aimbot Download 2024", description="link in discord")
        legit = make_video("good", title="Fortnite Pro Settings Tutorial")

        partition = prefilter.partition([legit, suspicious])

        assert [item.video.video_id for item in partition.high_priority] == ["bad"]
        assert [item.video.video_id for item in partition.low_priority] == ["good"]
        assert partition.medium_priority == []

    @pytest.mark.unit
    def test_every_video_in_exactly_one_tier(self, prefilter, make_video):
        titles = [
            "cheat menu free download",
            "apex hack",
            "patch notes review",
            "aimbot exploit",
            "walkthrough part 3",
            "leaked cracked loader",
            "",
        ]
        videos = [make_video(f"v{i}", title=title) for i, title in enumerate(titles)]

        partition = prefilter.partition(videos)

        tiers = partition.high_priority + partition.medium_priority + partition.low_priority
        assert sorted(item.video.video_id for item in tiers) == sorted(v.video_id for v in videos)
        assert len(partition.all) == len(videos)
        assert all(item.prefilter.infringement_score >= 3 for item in partition.high_priority)
        assert all(0 < item.prefilter.infringement_score < 3 for item in partition.medium_priority)
        assert all(item.prefilter.infringement_score == 0 for item in partition.low_priority)
        assert partition.counts()["all"] == len(videos)

    @pytest.mark.unit
    def test_sorted_descending_and_stable(self, prefilter, make_video):
        videos = [
            make_video("low1", title="nothing here"),
            make_video("med1", title="apex hack"),
            make_video("high", title="free download"),
            make_video("med2", title="apex cheat"),
            make_video("low2", title="also nothing"),
        ]

        partition = prefilter.partition(videos)

        assert [item.video.video_id for item in partition.all] == ["high", "med1", "med2", "low1", "low2"]
        priorities = [item.prefilter.priority for item in partition.all]
        assert priorities == sorted(priorities, reverse=True)

    @pytest.mark.unit
    def test_select_for_analysis_limits_medium(self, prefilter, make_video):
        videos = [make_video("high", title="free download")]
        videos += [make_video(f"med{i}", title="apex hack") for i in range(5)]
        partition = prefilter.partition(videos)

        selected = PreFilterService.select_for_analysis(partition, medium_limit=2)
        high_only = PreFilterService.select_for_analysis(partition)

        assert [v.video_id for v in selected] == ["high", "med0", "med1"]
        assert [v.video_id for v in high_only] == ["high"]
