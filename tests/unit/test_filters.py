import pytest

from app.models.schemas import WatchPolicy
from domains.deletion_watch.filters import should_process


@pytest.fixture
def policy():
    return WatchPolicy(extensions={"pdf", "mp4", ".MKV"})


@pytest.mark.parametrize(
    "path",
    [
        "/srv/media/report.pdf",
        "/srv/media/REPORT.PDF",
        "/srv/media/Movie.Mp4",
        "/srv/media/show.mkv",
        "/srv/media/archive.v2.pdf",
        "D:\\Media\\film.MP4",
    ],
)
def test_allowed_extensions_are_watched_in_any_case(policy, path):
    assert should_process(path, policy) is True


@pytest.mark.parametrize(
    "path",
    [
        "/srv/media/notes.txt",
        "/srv/media/report.pdf.tmp",
        "/srv/media/movie.mp4.part",
    ],
)
def test_other_extensions_are_ignored(policy, path):
    assert should_process(path, policy) is False


@pytest.mark.parametrize(
    "path",
    ["/srv/media/README", "/srv/media/trailing.", "/srv/media.pdf/Makefile"],
)
def test_paths_without_extension_are_ignored(policy, path):
    assert should_process(path, policy) is False


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/srv/media/.pdf", True),
        ("/home/u/.bashrc", True),
        ("/home/u/.profile", False),
        ("/home/u/.config.PDF", True),
    ],
)
def test_dot_files_use_the_text_after_the_last_dot(path, expected):
    policy = WatchPolicy(extensions={"pdf", "bashrc"})

    assert should_process(path, policy) is expected


@pytest.mark.parametrize(
    "path",
    ["/srv/media/README", "/srv/media/notes.txt", "/srv/media/report.pdf", "/srv/media/.bashrc"],
)
def test_watch_all_accepts_everything(path):
    policy = WatchPolicy(extensions={"pdf"}, watch_all=True)

    assert should_process(path, policy) is True


@pytest.mark.parametrize("path", ["", "   "])
def test_empty_paths_are_rejected(path):
    assert should_process(path, WatchPolicy(watch_all=True)) is False


def test_policy_normalises_extensions():
    policy = WatchPolicy(extensions=[".PDF", "Mp4", " ", ""])

    assert policy.extensions == frozenset({"pdf", "mp4"})
