import pytest

from vanet.core.estimator import LinkQualityEstimator, TrainingSample


def _batch():
    samples = []
    for i in range(20):
        features = [0.2 + 0.03 * i, (i % 5) / 5, 0.1 * (i % 3), 0.4]
        samples.append(TrainingSample(features, reward=0.7 + 0.01 * i))
    return samples


def test_predict_is_deterministic():
    a = LinkQualityEstimator(seed=1)
    b = LinkQualityEstimator(seed=1)
    x = [0.5, 1.0, 0.2, 0.3]
    assert a.predict(x) == a.predict(x)
    assert a.predict(x) == b.predict(x)
    assert 0.0 < a.predict(x) < 1.0


@pytest.mark.parametrize("features", [[0.1, 0.2, 0.3], [0.1, 0.2, 0.3, 0.4, 0.5], []])
def test_predict_rejects_wrong_feature_count(features):
    with pytest.raises(ValueError):
        LinkQualityEstimator().predict(features)


def test_training_reduces_error():
    est = LinkQualityEstimator(learning_rate=0.1, seed=42)
    batch = _batch()
    errors = [est.train_on_batch(batch) for _ in range(5)]
    errors.append(est.mean_squared_error(batch))
    assert all(later < earlier for earlier, later in zip(errors, errors[1:]))
    assert est.updates == 5


def test_mean_squared_error_of_empty_batch():
    assert LinkQualityEstimator().mean_squared_error([]) == 0.0
