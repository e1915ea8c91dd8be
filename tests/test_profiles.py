from blobdetect.profiles import DEFAULT_PROFILE, OTSU_ROUND, PROFILES, as_policy_dict, get_profile
from blobdetect.threshold import OtsuThreshold, ThresholdRange


def test_default_profile_is_multi_level() -> None:
    params = DEFAULT_PROFILE.parameters()
    assert isinstance(params.threshold_policy, ThresholdRange)
    assert params.threshold_policy.min_repeatability >= 2


def test_otsu_round_matches_the_demo_setup() -> None:
    params = OTSU_ROUND.parameters()
    assert isinstance(params.threshold_policy, OtsuThreshold)
    assert [f.to_dict() for f in params.filters] == [
        {"type": "Area", "min": 2000.0, "max": 20000.0},
        {"type": "Circularity", "min": 0.8, "max": 1.0},
    ]


def test_profiles_build_fresh_parameters() -> None:
    a = DEFAULT_PROFILE.parameters()
    b = DEFAULT_PROFILE.parameters()
    a.filters.clear()
    assert b.filters


def test_get_profile() -> None:
    assert get_profile(None) is DEFAULT_PROFILE
    assert get_profile("otsu_round") is OTSU_ROUND


def test_policy_dict_shape() -> None:
    p = as_policy_dict()
    assert p["detector"]["default_profile"] == DEFAULT_PROFILE.name
    assert set(p["detector"]["profiles"]) == set(PROFILES)
