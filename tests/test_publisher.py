"""Tests for the marketplace item publishing workflow."""

import json
import os
import sys
import textwrap
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from azs_tools.manifest import ManifestError, load_manifest
from azs_tools.packager import PackagerError
from azs_tools.publisher import PublishError, publish_marketplace_items
from azs_tools.storage import StorageContext

ENDPOINT = "https://contoso.blob.core.windows.net/"
REGISTERED = {"name": "registered"}


@pytest.fixture()
def workspace(tmp_path):
    """A packager, an output directory and one valid manifest."""
    packager = tmp_path / "AzureStackHubGallery.exe"
    packager.write_text("")
    out = tmp_path / "out"
    out.mkdir()
    manifest = tmp_path / "vm" / "manifest.json"
    manifest.parent.mkdir()
    manifest.write_text(json.dumps({"publisher": "Contoso", "name": "VM", "version": "1.0.0"}))
    return packager, manifest, out


@pytest.fixture()
def context():
    return StorageContext(account_name="contoso", blob_endpoint=ENDPOINT, client=MagicMock())


def _fake_packager(packager, manifest_path, destination):
    """Write the package the real packager would produce."""
    name = load_manifest(manifest_path).package_filename
    (Path(destination) / name).write_bytes(b"azpkg")


@pytest.fixture()
def mock_packager():
    with patch("azs_tools.publisher.run_packager", side_effect=_fake_packager) as mock_run:
        yield mock_run


@pytest.fixture()
def mock_gallery():
    with patch("azs_tools.publisher.add_gallery_item", return_value=REGISTERED) as mock_add:
        yield mock_add


class TestPublishEndToEnd:
    def test_single_manifest(self, workspace, context, mock_packager, mock_gallery) -> None:
        packager, manifest, out = workspace

        results = publish_marketplace_items(packager, manifest, out, "gallery", context=context)

        mock_packager.assert_called_once_with(packager, manifest, out)
        context.client.get_blob_client.assert_called_once_with(
            container="gallery", blob="Contoso.VM.1.0.0.azpkg"
        )
        uri = f"{ENDPOINT}gallery/Contoso.VM.1.0.0.azpkg"
        mock_gallery.assert_called_once_with(
            uri, force=True, identity="Contoso.VM.1.0.0", tenant_id=None
        )
        assert len(results) == 1
        assert results[0].blobUri == uri
        assert results[0].packageFile == out / "Contoso.VM.1.0.0.azpkg"
        assert results[0].galleryItem == REGISTERED

    def test_package_read_from_destination_not_cwd(
        self, workspace, context, mock_packager, mock_gallery, tmp_path, monkeypatch
    ) -> None:
        packager, manifest, out = workspace
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        results = publish_marketplace_items(packager, [manifest], out, "gallery", context=context)

        assert results[0].packageFile.parent == out

    def test_manifests_processed_in_order(
        self, workspace, context, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        second = manifest.parent / "second.json"
        second.write_text(json.dumps({"Publisher": "Contoso", "Name": "SQL", "Version": "2.0.0"}))

        results = publish_marketplace_items(
            packager, [manifest, second], out, "gallery", context=context
        )

        assert [r.manifest for r in results] == [manifest, second]
        assert mock_gallery.call_args_list[1].kwargs["identity"] == "Contoso.SQL.2.0.0"

    def test_tenant_forwarded_to_gallery(
        self, workspace, context, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        publish_marketplace_items(
            packager, manifest, out, "gallery", context=context, tenant_id="tid-1"
        )
        assert mock_gallery.call_args.kwargs["tenant_id"] == "tid-1"


PACKAGER_SCRIPT = """\
#!{python}
import json
import pathlib
import sys
import time

args = sys.argv[1:]
if args[0] != "package":
    sys.exit(2)
manifest = pathlib.Path(args[args.index("-m") + 1])
out = pathlib.Path(args[args.index("-o") + 1])
data = json.loads(manifest.read_text(encoding="utf-8-sig"))
time.sleep({delay})
name = ".".join(data[k] for k in ("publisher", "name", "version")) + ".azpkg"
(out / name).write_bytes(b"azpkg")
sys.exit({status})
"""


def _write_packager(path: Path, delay: float = 0.5, status: int = 0) -> Path:
    path.write_text(
        textwrap.dedent(PACKAGER_SCRIPT).format(python=sys.executable, delay=delay, status=status)
    )
    path.chmod(0o755)
    return path


@pytest.mark.skipif(os.name == "nt", reason="packager stand-in relies on a shebang")
class TestPublishWithPackagerProcess:
    """Runs a real child process as the packager."""

    def test_waits_for_package_before_upload(
        self, workspace, context, mock_gallery, tmp_path
    ) -> None:
        _, manifest, out = workspace
        packager = _write_packager(tmp_path / "packager")

        results = publish_marketplace_items(packager, manifest, out, "gallery", context=context)

        assert (out / "Contoso.VM.1.0.0.azpkg").read_bytes() == b"azpkg"
        context.client.get_blob_client.assert_called_once_with(
            container="gallery", blob="Contoso.VM.1.0.0.azpkg"
        )
        assert results[0].blobUri == f"{ENDPOINT}gallery/Contoso.VM.1.0.0.azpkg"
        mock_gallery.assert_called_once()

    def test_failed_process_stops_before_upload(
        self, workspace, context, mock_gallery, tmp_path
    ) -> None:
        _, manifest, out = workspace
        packager = _write_packager(tmp_path / "packager", delay=0, status=3)

        with pytest.raises(PublishError) as excinfo:
            publish_marketplace_items(packager, manifest, out, "gallery", context=context)

        assert isinstance(excinfo.value.__cause__, PackagerError)
        assert excinfo.value.__cause__.returncode == 3
        context.client.get_blob_client.assert_not_called()
        mock_gallery.assert_not_called()


class TestStorageContextResolution:
    def test_supplied_context_skips_construction(
        self, workspace, context, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        with patch("azs_tools.storage.create_storage_context") as mock_create:
            publish_marketplace_items(
                packager,
                manifest,
                out,
                "gallery",
                context=context,
                account_name="ignored",
                account_key="ignored",
            )
        mock_create.assert_not_called()

    def test_context_built_from_name_and_key(
        self, workspace, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        with patch("azs_tools.storage.BlobServiceClient") as mock_cls:
            mock_cls.return_value.url = ENDPOINT
            mock_cls.return_value.account_name = "contoso"
            publish_marketplace_items(
                packager, manifest, out, "gallery", account_name="contoso", account_key="k=="
            )

        mock_cls.assert_called_once_with(
            account_url=ENDPOINT,
            credential={"account_name": "contoso", "account_key": "k=="},
        )
        mock_cls.return_value.get_blob_client.assert_called_once()

    def test_missing_key_fails_before_packaging(
        self, workspace, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        with pytest.raises(ValueError):
            publish_marketplace_items(packager, manifest, out, "gallery", account_name="contoso")
        mock_packager.assert_not_called()


class TestPreconditions:
    def test_missing_packager(self, workspace, context, mock_packager, mock_gallery) -> None:
        packager, manifest, out = workspace
        with pytest.raises(FileNotFoundError, match="Packager"):
            publish_marketplace_items(
                packager.with_name("missing.exe"), manifest, out, "gallery", context=context
            )
        mock_packager.assert_not_called()
        context.client.get_blob_client.assert_not_called()

    def test_missing_destination(self, workspace, context, mock_packager, mock_gallery) -> None:
        packager, manifest, out = workspace
        with pytest.raises(FileNotFoundError, match="Destination"):
            publish_marketplace_items(
                packager, manifest, out / "nope", "gallery", context=context
            )
        mock_packager.assert_not_called()

    def test_destination_is_a_file(self, workspace, context, mock_packager, mock_gallery) -> None:
        packager, manifest, _ = workspace
        with pytest.raises(NotADirectoryError):
            publish_marketplace_items(packager, manifest, packager, "gallery", context=context)
        mock_packager.assert_not_called()

    def test_missing_second_manifest_checked_up_front(
        self, workspace, context, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        with pytest.raises(FileNotFoundError, match="Manifest"):
            publish_marketplace_items(
                packager, [manifest, manifest.with_name("gone.json")], out, "gallery",
                context=context,
            )
        mock_packager.assert_not_called()


class TestFailurePolicy:
    def test_first_manifest_unparsable_aborts_run(
        self, workspace, context, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        broken = manifest.with_name("broken.json")
        broken.write_text("{")

        with pytest.raises(PublishError) as excinfo:
            publish_marketplace_items(
                packager, [broken, manifest], out, "gallery", context=context
            )

        assert excinfo.value.manifest == broken
        assert excinfo.value.completed == []
        assert isinstance(excinfo.value.__cause__, ManifestError)
        mock_packager.assert_not_called()
        mock_gallery.assert_not_called()

    def test_later_failure_keeps_completed_results(
        self, workspace, context, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        second = manifest.with_name("second.json")
        second.write_text(json.dumps({"publisher": "Contoso", "name": "SQL", "version": "2.0.0"}))
        third = manifest.with_name("third.json")
        third.write_text(json.dumps({"publisher": "Contoso", "name": "Web", "version": "3.0.0"}))

        def packager_run(packager_path, manifest_path, destination):
            if manifest_path == second:
                raise PackagerError("Packager exited with status 1", returncode=1)
            _fake_packager(packager_path, manifest_path, destination)

        with (
            patch("azs_tools.publisher.run_packager", side_effect=packager_run) as mock_run,
            pytest.raises(PublishError) as excinfo,
        ):
            publish_marketplace_items(
                packager, [manifest, second, third], out, "gallery", context=context
            )

        assert excinfo.value.manifest == second
        assert [r.manifest for r in excinfo.value.completed] == [manifest]
        assert isinstance(excinfo.value.__cause__, PackagerError)
        assert mock_run.call_count == 2
        assert mock_gallery.call_count == 1

    def test_missing_package_stops_before_upload(
        self, workspace, context, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        with (
            patch("azs_tools.publisher.run_packager"),
            pytest.raises(PublishError) as excinfo,
        ):
            publish_marketplace_items(packager, manifest, out, "gallery", context=context)

        assert isinstance(excinfo.value.__cause__, FileNotFoundError)
        context.client.get_blob_client.assert_not_called()
        mock_gallery.assert_not_called()

    def test_upload_failure_skips_registration(
        self, workspace, context, mock_packager, mock_gallery
    ) -> None:
        packager, manifest, out = workspace
        blob_client = context.client.get_blob_client.return_value
        blob_client.upload_blob.side_effect = OSError("connection reset")

        with pytest.raises(PublishError, match="connection reset"):
            publish_marketplace_items(packager, manifest, out, "gallery", context=context)
        mock_gallery.assert_not_called()
