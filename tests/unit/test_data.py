import gzip

import numpy as np
import pytest

from ffnn.data import DataSet, Match, available_datasets, get_dataset
from ffnn.data.cache import CacheManifest, fetch
from ffnn.data.idx import (
    IdxFormatError,
    read_dataset,
    read_images,
    read_labels,
    write_images,
    write_labels,
)


def _images(count=5, rows=3, cols=2):
    return (np.arange(count * rows * cols) % 256).astype(np.uint8).reshape(count, rows, cols)


def test_idx_roundtrip(tmp_path):
    images = _images()
    write_images(tmp_path / "img.idx", images)
    write_labels(tmp_path / "lbl.idx", [0, 1, 2, 1, 0])
    pixels, rows, cols = read_images(tmp_path / "img.idx")
    assert (rows, cols) == (3, 2)
    assert pixels.shape == (5, 6)
    assert pixels.max() <= 1.0
    np.testing.assert_allclose(pixels[1], images[1].reshape(-1) / 255.0, rtol=1e-6)
    assert read_labels(tmp_path / "lbl.idx").tolist() == [0, 1, 2, 1, 0]

    data = read_dataset(tmp_path / "img.idx", tmp_path / "lbl.idx", limit=3)
    assert len(data) == 3
    assert data[2].label == 2
    assert (data[0].width, data[0].height) == (3, 2)


def test_idx_gzip_transparent(tmp_path):
    plain = write_images(tmp_path / "img.idx", _images())
    with gzip.open(tmp_path / "img.idx.gz", "wb") as handle:
        handle.write(plain.read_bytes())
    a, _, _ = read_images(plain)
    b, _, _ = read_images(tmp_path / "img.idx.gz")
    np.testing.assert_array_equal(a, b)


def test_idx_bad_magic_and_count_mismatch(tmp_path):
    write_images(tmp_path / "img.idx", _images(count=5))
    write_labels(tmp_path / "lbl.idx", [0, 1, 2])
    with pytest.raises(IdxFormatError):
        read_labels(tmp_path / "img.idx")
    with pytest.raises(IdxFormatError):
        read_images(tmp_path / "lbl.idx")
    with pytest.raises(IdxFormatError, match="different number"):
        read_dataset(tmp_path / "img.idx", tmp_path / "lbl.idx")


def test_idx_limit_validation(tmp_path):
    write_labels(tmp_path / "lbl.idx", [0, 1, 2])
    with pytest.raises(ValueError):
        read_labels(tmp_path / "lbl.idx", limit=4)
    with pytest.raises(ValueError):
        read_labels(tmp_path / "lbl.idx", limit=-1)


def test_match_and_dataset_basics():
    with pytest.raises(ValueError):
        Match(inputs=[0.0], width=-1)
    match = Match(inputs=[0.0, 1.0, 0.5, 0.95], label=3, width=2, height=2)
    assert match.has_label
    assert match.render() == " @\n+@\n"
    assert not Match(inputs=[0.1]).has_label

    data = DataSet()
    data.add(match)
    data.extend([Match(inputs=[1, 1, 1, 1], label=0)])
    assert data.size() == len(data) == 2
    assert data.inputs().shape == (2, 4)
    assert data.labels().tolist() == [3, 0]
    assert len(data.head(1)) == 1


def test_dataset_shuffle_keeps_pairs():
    data = DataSet.from_arrays(np.arange(20).reshape(10, 2), np.arange(10))
    data.shuffle(np.random.default_rng(0))
    for match in data:
        assert match.inputs[0] == 2 * match.label


def test_cache_manifest_records(tmp_path):
    manifest = CacheManifest(tmp_path)
    offline_path = tmp_path / "fixture.bin"

    def _builder(path):
        path.write_bytes(b"data")

    path, record = fetch(
        name="unit-fixture",
        url="http://example.com/unit",
        offline_path=offline_path,
        offline_builder=_builder,
        offline=True,
        cache_dir=tmp_path,
        filename="unit.bin",
        manifest=manifest,
    )
    assert path.exists()
    stored = manifest.get("unit-fixture")
    assert stored["mode"] == "offline"
    assert stored["checksum"] == record["checksum"]
    assert (tmp_path / "manifest.json").exists()


def test_registered_datasets():
    assert {"blobs", "emnist_letters", "mnist"} <= set(available_datasets())
    with pytest.raises(KeyError, match="mnist"):
        get_dataset("cifar10")


def test_mnist_offline_fixture(tmp_path):
    spec = get_dataset("mnist", offline=True, cache_dir=tmp_path, max_items=32, test_items=8)
    assert spec.input_size == 784
    assert spec.num_classes == 10
    assert spec.splits == {"train": 32, "test": 8}
    labels = spec.train.labels()
    assert labels.min() >= 0 and labels.max() < 10
    assert spec.provenance["mode"] == "offline"
    assert "@" in spec.train[0].render() or "%" in spec.train[0].render()


def test_emnist_letters_labels_are_shifted(tmp_path):
    spec = get_dataset("emnist_letters", cache_dir=tmp_path)
    labels = spec.train.labels()
    assert labels.min() == 0
    assert labels.max() == 25
    assert spec.num_classes == 26


def test_blobs_dataset():
    spec = get_dataset("blobs", n_points=50, n_features=3, num_classes=2, test_split=0.2)
    assert spec.splits == {"train": 40, "test": 10}
    assert spec.input_size == 3
    again = get_dataset("blobs", n_points=50, n_features=3, num_classes=2, test_split=0.2)
    np.testing.assert_array_equal(spec.train.inputs(), again.train.inputs())


def test_fetch_reuses_download_and_falls_back_to_fixture(tmp_path, monkeypatch):
    from ffnn.data import cache

    (tmp_path / "labels.idx").write_bytes(b"cached")
    path, record = fetch(
        name="mnist:train_labels",
        url="http://example.com/labels.idx",
        offline_path=tmp_path / "fixture.idx",
        offline=False,
        cache_dir=tmp_path,
    )
    assert path == tmp_path / "labels.idx"
    assert record["mode"] == "cache"
    assert record["size_bytes"] == 6

    def _fail(url, target):
        raise OSError("unreachable")

    monkeypatch.setattr(cache, "_download", _fail)
    monkeypatch.setattr(cache.time, "sleep", lambda seconds: None)
    path, record = fetch(
        name="mnist:test_labels",
        url="http://example.com/other.idx",
        offline_path=tmp_path / "fixture.idx",
        offline_builder=lambda p: p.write_bytes(b"fixture"),
        offline=False,
        retries=0,
        cache_dir=tmp_path,
    )
    assert path == tmp_path / "fixture.idx"
    assert record["mode"] == "offline-fallback"
    assert record["checksum"] == cache.file_digest(path)
    assert cache.CacheManifest(tmp_path).get("mnist:test_labels")["mode"] == "offline-fallback"


def test_fetch_without_fixture_raises(tmp_path):
    from ffnn.data.cache import CacheError

    with pytest.raises(CacheError):
        fetch(
            name="missing",
            url="http://example.com/missing.idx",
            offline_path=tmp_path / "nope.idx",
            offline=True,
            cache_dir=tmp_path,
        )
