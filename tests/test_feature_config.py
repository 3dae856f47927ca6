import pytest

from feature_config import FeatureConfig


def test_lookup_both_directions():
    cfg = FeatureConfig(["age", "income", "height"])

    assert cfg.num_features == 3
    assert cfg.get_feature_index("income") == 1
    assert cfg.get_feature_name(2) == "height"
    assert cfg.get_feature_index("missing") == -1


def test_feature_name_out_of_range():
    cfg = FeatureConfig(["age"])

    with pytest.raises(IndexError):
        cfg.get_feature_name(1)
    with pytest.raises(IndexError):
        cfg.get_feature_name(-1)


@pytest.mark.parametrize("names", [["a", "a"], ["a", ""], ["a", 3]])
def test_invalid_feature_tables_rejected(names):
    with pytest.raises(ValueError):
        FeatureConfig(names)


def test_from_dict_accepts_names_and_objects():
    cfg = FeatureConfig.from_dict(
        {"features": ["age", {"name": "income", "transform": "log"}, "height"]}
    )

    assert cfg.feature_names == ["age", "income", "height"]
    assert cfg.get_feature_index("income") == 1


@pytest.mark.parametrize("data", [{}, {"features": [{"transform": "log"}]}])
def test_from_dict_rejects_incomplete_config(data):
    with pytest.raises(ValueError):
        FeatureConfig.from_dict(data)
