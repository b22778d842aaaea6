import logging

from pyroi.features.feature_names import (
    BASE_FEATURES,
    FEATURE_GROUPS,
    GEODETIC_LENGTH,
    THICKNESS,
    expand_feature_selection,
    get_feature_names,
)


def test_all_groups_in_order():
    names = get_feature_names()
    assert names[:4] == list(BASE_FEATURES)
    assert names[-5:] == FEATURE_GROUPS["ngtdm"]


def test_unknown_group_is_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger="Dev_logger"):
        assert get_feature_names(["shape", "glcm"]) == [GEODETIC_LENGTH, THICKNESS]
    assert "glcm" in caplog.text


def test_expand_mixes_groups_and_names_without_duplicates():
    assert expand_feature_selection(None) is None
    assert expand_feature_selection(["SHAPE", THICKNESS, "ngtdm_contrast"]) == [
        GEODETIC_LENGTH,
        THICKNESS,
        "ngtdm_contrast",
    ]
