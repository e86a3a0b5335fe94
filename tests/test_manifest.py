"""
Testes do preflight do composer.json e da leitura da lista de patches.
"""

import json

import pytest
import requests

from patchcheck.modules import manifest, utils
from patchcheck.modules.dependency import PatchDescriptor
from patchcheck.modules.manifest import ConfigurationError


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    (root / "patches").mkdir(parents=True)
    (root / "patches" / "fix.patch").write_text("--- a/x\n+++ b/x\n")
    return root


class TestPreflight:
    def test_raiz_inexistente(self, tmp_path):
        with pytest.raises(ConfigurationError, match="inválida"):
            manifest.preflight(str(tmp_path / "nope"))

    def test_sem_composer_json(self, project):
        with pytest.raises(ConfigurationError, match="composer.json not found"):
            manifest.preflight(str(project))

    def test_json_invalido(self, project):
        (project / "composer.json").write_text("{not json")
        with pytest.raises(ConfigurationError, match="no valid json"):
            manifest.preflight(str(project))

    def test_sem_patches(self, project):
        _write(project / "composer.json", {"require": {}, "extra": {}})
        with pytest.raises(ConfigurationError, match="does not list any patches"):
            manifest.preflight(str(project))

    def test_valido(self, project):
        data = {"extra": {"patches": {"acme/widget": {"Fix": "patches/fix.patch"}}}}
        _write(project / "composer.json", data)
        assert manifest.preflight(str(project)) == data


class TestLoadPatches:
    def test_patches_inline_ordenados_por_pacote(self, project):
        data = {"extra": {"patches": {
            "drupal/core": {"Core fix": "patches/fix.patch"},
            "acme/widget": {"Widget fix": "patches/fix.patch", "Second": "patches/fix.patch"},
        }}}

        declared = manifest.load_patches(data, str(project))

        assert list(declared) == ["acme/widget", "drupal/core"]
        assert declared["acme/widget"] == [
            ("Widget fix", "patches/fix.patch"),
            ("Second", "patches/fix.patch"),
        ]

    def test_patches_file_separado(self, project):
        _write(project / "composer.patches.json",
               {"patches": {"acme/widget": {"Fix": "patches/fix.patch"}}})
        data = {"extra": {"patches-file": "composer.patches.json"}}

        assert manifest.load_patches(data, str(project)) == {
            "acme/widget": [("Fix", "patches/fix.patch")],
        }

    def test_patches_file_inexistente(self, project):
        data = {"extra": {"patches-file": "missing.json"}}
        with pytest.raises(ConfigurationError):
            manifest.load_patches(data, str(project))

    def test_formato_em_lista(self, project):
        data = {"extra": {"patches": {"acme/widget": [
            {"description": "Fix", "url": "patches/fix.patch"},
            {"url": "https://example.com/x.patch"},
        ]}}}

        assert manifest.load_patches(data, str(project)) == {"acme/widget": [
            ("Fix", "patches/fix.patch"),
            ("https://example.com/x.patch", "https://example.com/x.patch"),
        ]}

    @pytest.mark.parametrize("value", [
        "patches/fix.patch",
        [{"description": "no url"}],
        {"Fix": ""},
        {"Fix": 3},
    ])
    def test_entradas_malformadas(self, project, value):
        data = {"extra": {"patches": {"acme/widget": value}}}
        with pytest.raises(ConfigurationError):
            manifest.load_patches(data, str(project))


class TestResolvePatchFile:
    def test_caminho_relativo(self, project):
        path = manifest.resolve_patch_file("patches/fix.patch", str(project), "/unused")
        assert path == str(project / "patches" / "fix.patch")

    def test_arquivo_inexistente(self, project):
        with pytest.raises(ConfigurationError, match="não encontrado"):
            manifest.resolve_patch_file("patches/nope.patch", str(project), "/unused")

    def test_url_e_baixada(self, project, tmp_path, monkeypatch):
        calls = []

        def fake_download(url, dest_dir):
            calls.append((url, dest_dir))
            return str(tmp_path / "downloaded.patch")

        monkeypatch.setattr(utils, "download", fake_download)
        path = manifest.resolve_patch_file("https://example.com/fix.patch", str(project), str(tmp_path))

        assert path == str(tmp_path / "downloaded.patch")
        assert calls == [("https://example.com/fix.patch", str(tmp_path))]

    def test_falha_no_download(self, project, tmp_path, monkeypatch):
        def failing(url, dest_dir):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(utils, "download", failing)
        with pytest.raises(ConfigurationError, match="baixar"):
            manifest.resolve_patch_file("https://example.com/fix.patch", str(project), str(tmp_path))

    def test_falha_ao_gravar_download(self, project, tmp_path, monkeypatch):
        def unwritable(url, dest_dir):
            raise PermissionError(13, "Permission denied", dest_dir)

        monkeypatch.setattr(utils, "download", unwritable)
        with pytest.raises(ConfigurationError, match="gravar"):
            manifest.resolve_patch_file("https://example.com/fix.patch", str(project), str(tmp_path))

    def test_resolve_todos_os_patches(self, project):
        declared = {"acme/widget": [("Fix", "patches/fix.patch")]}

        resolved = manifest.resolve_patches(declared, str(project), "/unused")

        assert resolved == {"acme/widget": [
            PatchDescriptor("Fix", str(project / "patches" / "fix.patch"), "acme/widget"),
        ]}


class TestStripPatchesPlugin:
    def test_remove_plugin_e_lista_de_patches(self):
        data = {
            "require": {"drupal/core": "^9.4", "cweagans/composer-patches": "^1.7"},
            "config": {"allow-plugins": {"cweagans/composer-patches": True, "composer/installers": True}},
            "extra": {"patches": {"drupal/core": {}}, "installer-paths": {"web/core": ["type:drupal-core"]}},
        }

        stripped = manifest.strip_patches_plugin(data)

        assert stripped["require"] == {"drupal/core": "^9.4"}
        assert stripped["config"]["allow-plugins"] == {"composer/installers": True}
        assert stripped["extra"] == {"installer-paths": {"web/core": ["type:drupal-core"]}}
        # original intacto
        assert "cweagans/composer-patches" in data["require"]

    def test_remove_extra_vazio(self):
        stripped = manifest.strip_patches_plugin({"extra": {"patches-file": "p.json"}})
        assert "extra" not in stripped
