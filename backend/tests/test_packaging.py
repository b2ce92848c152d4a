import zipfile

from replicator.generation.frames import Frame
from replicator.generation.models import MediaKind
from replicator.generation.postprocess import ExtractedCode
from replicator.packaging import ARCHIVE_NAME, build_readme, download_path, write_artifacts


def code(js=""):
    return ExtractedCode(markup="<body><p>Hi</p></body>", body="<p>Hi</p>", css="p { color: red; }", js=js)


def test_image_artifacts_without_script(tmp_path):
    artifacts = write_artifacts("task-1", code(), MediaKind.IMAGE, artifact_dir=tmp_path)

    assert artifacts.directory == tmp_path / "task-1"
    assert artifacts.files == ["index.html", "styles.css", "README.md", ARCHIVE_NAME]
    index = (artifacts.directory / "index.html").read_text(encoding="utf-8")
    assert "<p>Hi</p>" in index
    assert "script.js" not in index
    assert (artifacts.directory / "styles.css").read_text(encoding="utf-8") == "p { color: red; }"

    with zipfile.ZipFile(artifacts.archive_path) as zf:
        assert sorted(zf.namelist()) == ["README.md", "index.html", "styles.css"]
        assert zf.read("index.html").decode("utf-8") == index


def test_image_with_script_gets_script_file(tmp_path):
    artifacts = write_artifacts("task-2", code(js="go()"), MediaKind.IMAGE, artifact_dir=tmp_path)

    assert "script.js" in artifacts.files
    assert (artifacts.directory / "script.js").read_text(encoding="utf-8") == "go()"
    assert '<script defer src="script.js"></script>' in (artifacts.directory / "index.html").read_text(encoding="utf-8")


def test_video_artifacts_include_script_and_frames(tmp_path):
    frames = [Frame(image=f"jpeg-{i}".encode(), timestamp=i * 0.5, index=i) for i in range(3)]

    artifacts = write_artifacts("task-3", code(), MediaKind.VIDEO, iteration_count=1, frames=frames, artifact_dir=tmp_path)

    assert artifacts.files[:4] == ["index.html", "styles.css", "script.js", "README.md"]
    assert artifacts.files[-1] == ARCHIVE_NAME
    with zipfile.ZipFile(artifacts.archive_path) as zf:
        names = set(zf.namelist())
        assert {"index.html", "styles.css", "script.js", "README.md"} <= names
        assert {"frames/frame_0.jpg", "frames/frame_1.jpg", "frames/frame_2.jpg"} <= names
        assert zf.read("frames/frame_2.jpg") == b"jpeg-2"
        assert zf.read("script.js") == b""


def test_readme_describes_contents():
    readme = build_readme(MediaKind.VIDEO, 3, include_script=True, frame_count=7)

    assert "uploaded video" in readme
    assert "3 iterations" in readme
    assert "script.js" in readme
    assert "7 video frames" in readme
    assert "Tailwind CSS" in readme

    plain = build_readme(MediaKind.IMAGE, 1, include_script=False)
    assert "script.js" not in plain
    assert "frames/" not in plain


def test_download_path():
    assert download_path("abc") == f"/download/abc/{ARCHIVE_NAME}"
    assert download_path("abc", "index.html") == "/download/abc/index.html"
