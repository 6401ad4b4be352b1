import pytest
from click.testing import CliRunner

from quickshare_api.cli import cli
from tests.consts import TEST_BUCKET_NAME


@pytest.fixture
def run(settings, backend):
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(cli, list(args), obj={"settings": settings, "backend": backend}, input=input)

    return invoke


@pytest.fixture
def local_files(tmp_path):
    paths = []
    for name, content in [("a.txt", b"alpha"), ("b.txt", b"bravo")]:
        path = tmp_path / name
        path.write_bytes(content)
        paths.append(str(path))
    return paths


def test_show_config_masks_secrets(run, backend):
    backend.settings.backend_anon_key = "super-secret"

    result = run("show-config")

    assert result.exit_code == 0
    assert "Current Configuration:" in result.output
    assert "super-secret" not in result.output


def test_upload_and_list(run, local_files):
    result = run("upload", *local_files)

    assert result.exit_code == 0, result.output
    assert "2 of 2 complete" in result.output

    listing = run("list-files")
    assert listing.exit_code == 0
    assert "-a.txt" in listing.output
    assert "-b.txt" in listing.output
    assert "Page 1 of 1 (2 files)" in listing.output


def test_upload_requires_paths(run):
    result = run("upload")

    assert result.exit_code == 2
    assert "Please select a file first" in result.output


def test_upload_failure_exits_nonzero(run, local_files, mocked_aws):
    mocked_aws.delete_bucket(Bucket=TEST_BUCKET_NAME)

    result = run("upload", *local_files)

    assert result.exit_code == 1
    assert "0 of 2 complete" in result.output


def test_list_files_empty(run):
    result = run("list-files")

    assert result.exit_code == 0
    assert "No files uploaded yet" in result.output


def test_delete_file_prompts(run, local_files, backend):
    run("upload", local_files[0])
    name = backend.files.list_page(1).files[0].name

    cancelled = run("delete-file", name, input="n\n")
    assert "Cancelled" in cancelled.output
    assert backend.files.list_page(1).total_count == 1

    confirmed = run("delete-file", name, input="y\n")
    assert f"Deleted {name}" in confirmed.output
    assert backend.files.list_page(1).files == []


def test_delete_missing_file(run):
    result = run("delete-file", "ghost.txt", "--yes")

    assert result.exit_code == 1
    assert "File 'ghost.txt' not found" in result.output


def test_posts_commands(run, backend):
    post = backend.posts.save("Notes", "<p>Hello <b>World</b></p>")

    listing = run("list-posts")
    assert listing.exit_code == 0
    assert f"{post.id}\tNotes\t2 words" in listing.output

    copied = run("copy-post", post.id)
    assert copied.exit_code == 0
    assert copied.output.strip() == "Hello World"

    deleted = run("delete-post", post.id, "--yes")
    assert f"Deleted {post.id}" in deleted.output
    assert backend.posts.list_posts() == []


def test_copy_missing_post(run):
    result = run("copy-post", "missing")

    assert result.exit_code == 1
    assert "Post 'missing' not found" in result.output
