"""Client for npm-compatible registries used to fetch boilerplates."""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tarfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import requests

from edo_tools.errors import RegistryError
from edo_tools.utils.file_utils import lookup_file, read_json_file

if TYPE_CHECKING:
	from collections.abc import Mapping

logger = logging.getLogger(__name__)

HTTP_OK = 200
REQUEST_TIMEOUT = 5
DOWNLOAD_CHUNK_SIZE = 64 * 1024

NPM_REGISTRY = "https://registry.npmjs.org"
REGISTRY_ALIASES = {
	"taobao": "https://registry.npmmirror.com",
	"npm": NPM_REGISTRY,
}
REGISTRY_ENV_VARS = ("npm_registry", "npm_config_registry")
PROXY_ENV_VARS = ("http_proxy", "HTTP_PROXY")

BOILERPLATE_CACHE_NAME = "edo-init-boilerplate"


def resolve_registry(key: str | None, root: Path, environ: Mapping[str, str] | None = None) -> str:
	"""
	Turn a registry alias or URL into a registry base URL.

	Args:
		key: ``taobao``, ``npm``, an http(s) URL, or anything else to fall back
		root: Directory to search upward from for a package.json
		environ: Environment mapping (defaults to `os.environ`)

	Returns:
		The registry URL without a trailing slash

	"""
	environ = os.environ if environ is None else environ
	key = key or ""

	if key in REGISTRY_ALIASES:
		url = REGISTRY_ALIASES[key]
	elif re.match(r"^https?:", key):
		url = key
	else:
		url = _registry_from_manifest(root) or next(
			(environ[name] for name in REGISTRY_ENV_VARS if environ.get(name)), NPM_REGISTRY
		)

	url = url.rstrip("/")
	logger.info("Using registry: %s", url)
	return url


def _registry_from_manifest(root: Path) -> str | None:
	manifest_path = lookup_file(root, ["package.json"])
	if manifest_path is None:
		return None
	try:
		manifest = read_json_file(manifest_path)
	except (OSError, json.JSONDecodeError) as e:
		logger.debug("Ignoring unreadable %s: %s", manifest_path, e)
		return None
	publish_config = manifest.get("publishConfig") if isinstance(manifest, dict) else None
	if isinstance(publish_config, dict) and publish_config.get("registry"):
		return str(publish_config["registry"])
	return None


class RegistryClient:
	"""Fetches package metadata and tarballs from one registry."""

	def __init__(
		self,
		registry_url: str,
		session: requests.Session | None = None,
		environ: Mapping[str, str] | None = None,
	) -> None:
		"""
		Initialize the registry client.

		Args:
			registry_url: Registry base URL without a trailing slash
			session: Session to reuse; a new one is created otherwise
			environ: Environment mapping consulted for proxy settings

		"""
		self.registry_url = registry_url.rstrip("/")
		self.session = session or requests.Session()

		environ = os.environ if environ is None else environ
		proxy = next((environ[name] for name in PROXY_ENV_VARS if environ.get(name)), None)
		if proxy:
			self.session.proxies.update({"http": proxy, "https": proxy})
			logger.info("Using HTTP proxy: %s", proxy)

	def get_package_info(self, name: str, with_fallback: bool = False, root: Path | None = None) -> dict[str, Any]:
		"""
		Fetch the manifest of the latest published version of `name`.

		Args:
			name: Package name
			with_fallback: Read ``node_modules/<name>/package.json`` under
				`root` when the registry cannot be reached
			root: Project root used for the fallback

		Raises:
			RegistryError: If the package cannot be fetched (and no fallback applies)

		"""
		url = f"{self.registry_url}/{name}/latest"
		logger.info("Fetching %s info from %s", name, self.registry_url)
		try:
			response = self.session.get(url, timeout=REQUEST_TIMEOUT)
			if response.status_code != HTTP_OK:
				msg = f"Fetching {name} info failed: HTTP {response.status_code}"
				raise RegistryError(msg)
			return response.json()
		except (requests.RequestException, ValueError, RegistryError) as e:
			if with_fallback and root is not None:
				fallback = Path(root) / "node_modules" / name / "package.json"
				logger.warning("Using fallback from %s", fallback)
				try:
					return read_json_file(fallback)
				except (OSError, json.JSONDecodeError) as fallback_error:
					msg = f"Could not fetch {name} info: {e}"
					raise RegistryError(msg) from fallback_error
			if isinstance(e, RegistryError):
				raise
			msg = f"Could not fetch {name} info: {e}"
			raise RegistryError(msg) from e

	def download_boilerplate(self, package: str, cache_dir: Path) -> Path:
		"""
		Download and extract the tarball of `package`.

		The extraction directory is cleared first.

		Returns:
			Path of the extracted package directory

		Raises:
			RegistryError: If metadata, download or extraction fails

		"""
		info = self.get_package_info(package)
		tarball_url = info.get("dist", {}).get("tarball")
		if not tarball_url:
			msg = f"{package} has no tarball in its registry metadata"
			raise RegistryError(msg)

		save_dir = Path(cache_dir) / BOILERPLATE_CACHE_NAME
		shutil.rmtree(save_dir, ignore_errors=True)
		save_dir.mkdir(parents=True, exist_ok=True)
		archive_path = save_dir / "boilerplate.tgz"

		try:
			with self.session.get(tarball_url, stream=True, timeout=REQUEST_TIMEOUT) as response:
				response.raise_for_status()
				with archive_path.open("wb") as f:
					for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
						f.write(chunk)
			with tarfile.open(archive_path, "r:gz") as archive:
				archive.extractall(save_dir, filter="data")
		except (requests.RequestException, tarfile.TarError, OSError) as e:
			msg = f"Failed to download {package}: {e}"
			raise RegistryError(msg) from e
		finally:
			archive_path.unlink(missing_ok=True)

		logger.info("Download succeeded, extracted to %s", save_dir)
		return save_dir / "package"
