"""git command manager for automated checkouts.

`GitCommandManager` wraps every git invocation a checkout needs. Each public
method builds one argument vector, runs it through `exec_git()` and interprets
the result according to its own exit-code policy:

- By default a non-zero exit code raises `GitCommandError`, carrying git's own
  stderr.
- Methods prefixed with `try_`, and queries whose answer is encoded in the
  exit code (`has_diff`, `sha_exists`, `config_exists`, ...), accept every exit
  code and turn it into a value instead.
- Network-bound operations (`fetch_remote`, `get_default_branch`, `lfs_fetch`)
  run through the manager's `RetryHelper`. `fetch` and `fetch_remote` never
  raise; they return a `FetchResult` that is falsy on failure.

A manager must be initialized before use. `create_git_command_manager()` does
this: it resolves git on PATH, probes and gates its version (and git-lfs when
requested) and prepares the environment overlay layered over the process
environment for every invocation.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol

from repocheckout.config.settings import CheckoutConfig
from repocheckout.engine.retry import EventEmitter, RetryHelper, create_retry_helper
from repocheckout.git import fs_helper, regexp_helper
from repocheckout.git.errors import (
    ConfigurationError,
    GitCommandError,
    GitVersionError,
    GitVersionUndeterminedError,
    InvalidRemoteUrlError,
    ToolNotFoundError,
    UnexpectedOutputError,
    UnsupportedGitVersionError,
)
from repocheckout.git.exec_output import GitExecOutput
from repocheckout.git.version import GitVersion
from repocheckout.models.checkout import (
    FetchResult,
    FetchStatus,
    RemoteDetail,
    WorkingBase,
    WorkingBaseType,
)

logger = logging.getLogger(__name__)

TAGS_REF_SPEC = "+refs/tags/*:refs/tags/*"

# Auth header not supported before 2.9
# Wire protocol v2 not supported before 2.18
MINIMUM_GIT_VERSION = GitVersion("2.18")
# Auth header not supported before 2.1
MINIMUM_GIT_LFS_VERSION = GitVersion("2.1")
# `git sparse-checkout` was introduced in 2.25
MINIMUM_GIT_SPARSE_CHECKOUT_VERSION = GitVersion("2.25")

USER_AGENT_PRODUCT = "repocheckout"

_VERSION_IN_OUTPUT = re.compile(r"\d+\.\d+(\.\d+)?")


class ProcessRunner(Protocol):
    def __call__(
        self, args: list[str], *, cwd: Path, env: Mapping[str, str]
    ) -> subprocess.CompletedProcess[str]: ...


def run_process(args: list[str], *, cwd: Path, env: Mapping[str, str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        args,
        cwd=cwd,
        env=dict(env),
        capture_output=True,
        text=True,
        # Ref names may hold bytes that are not UTF-8.
        errors="replace",
    )


class ExecListener:
    """Receives the output of a git invocation on top of the default capture.

    Override only the channels you need; `GitExecOutput` is filled either way.
    """

    def on_stdout(self, line: str) -> None:
        pass

    def on_stderr(self, line: str) -> None:
        pass

    def on_debug(self, line: str) -> None:
        pass

    def on_exit(self, exit_code: int) -> None:
        pass


class _LineCollector(ExecListener):
    def __init__(self) -> None:
        self.stdout: list[str] = []
        self.stderr: list[str] = []

    def on_stdout(self, line: str) -> None:
        self.stdout.append(line)

    def on_stderr(self, line: str) -> None:
        self.stderr.append(line)


class GitCommandManager:
    def __init__(
        self,
        working_directory: str | Path,
        lfs: bool = False,
        do_sparse_checkout: bool = False,
        *,
        config: CheckoutConfig | None = None,
        retry_helper: RetryHelper | None = None,
        runner: ProcessRunner | None = None,
        which: Callable[[str], str | None] | None = None,
        environ: Mapping[str, str] | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self._working_directory = Path(working_directory).absolute()
        self._lfs = lfs
        self._do_sparse_checkout = do_sparse_checkout
        self._config = config or CheckoutConfig()
        self._emitter = emitter
        self._runner: ProcessRunner = runner or run_process
        self._which = which or shutil.which
        self._base_env: dict[str, str] = dict(os.environ if environ is None else environ)
        self._git_env: dict[str, str] = {
            "GIT_TERMINAL_PROMPT": "0",  # Disable git prompt
            "GCM_INTERACTIVE": "Never",  # Disable prompting for git credential manager
        }
        self._git_path = ""
        self._git_version = GitVersion()
        self._initialized = False

        if retry_helper is None:
            retry = self._config.retry
            retry_helper = create_retry_helper(
                retry.max_attempts,
                retry.min_seconds,
                retry.max_seconds,
                retry.attempts_interval,
                emitter=emitter,
            )
        self._retry_helper = retry_helper

    # =========================================================================
    # Initialization
    # =========================================================================

    def initialize(self) -> None:
        # git-lfs downloads content whenever any local/user/system setting
        # enables it; keep the smudge filter off unless LFS was requested.
        if not self._lfs:
            self._git_env["GIT_LFS_SKIP_SMUDGE"] = "1"

        self._git_path = self._resolve_tool("git")

        logger.debug("Getting git version")
        git_version = self._probe_version(["version"], tool="git")
        if not git_version.check_minimum(MINIMUM_GIT_VERSION):
            raise UnsupportedGitVersionError(
                "git", str(MINIMUM_GIT_VERSION), str(git_version), self._git_path
            )
        self._git_version = git_version
        self._emit("GitVersionDetected", tool="git", version=str(git_version), path=self._git_path)

        if self._lfs:
            logger.debug("Getting git-lfs version")
            git_lfs_path = self._resolve_tool("git-lfs")
            git_lfs_version = self._probe_version(["lfs", "version"], tool="git-lfs")
            if not git_lfs_version.check_minimum(MINIMUM_GIT_LFS_VERSION):
                raise UnsupportedGitVersionError(
                    "git-lfs", str(MINIMUM_GIT_LFS_VERSION), str(git_lfs_version), git_lfs_path
                )
            self._emit("GitVersionDetected", tool="git-lfs", version=str(git_lfs_version), path=git_lfs_path)

        if self._do_sparse_checkout and not git_version.check_minimum(MINIMUM_GIT_SPARSE_CHECKOUT_VERSION):
            raise UnsupportedGitVersionError(
                "Git",
                str(MINIMUM_GIT_SPARSE_CHECKOUT_VERSION),
                str(git_version),
                self._git_path,
                purpose="sparse checkout",
            )

        user_agent = f"git/{git_version} ({USER_AGENT_PRODUCT})"
        logger.debug("Set git useragent to: %s", user_agent)
        self._git_env["GIT_HTTP_USER_AGENT"] = user_agent
        self._initialized = True

    def _resolve_tool(self, name: str) -> str:
        path = self._which(name)
        if not path:
            raise ToolNotFoundError(name)
        return path

    def _probe_version(self, args: list[str], *, tool: str) -> GitVersion:
        version = GitVersion()
        stdout = self._exec(args).get_stdout().strip()
        if "\n" not in stdout:
            match = _VERSION_IN_OUTPUT.search(stdout)
            if match:
                version = GitVersion(match.group(0))
        if not version.is_valid():
            raise GitVersionUndeterminedError(tool)
        return version

    # =========================================================================
    # Execution
    # =========================================================================

    def exec_git(
        self,
        args: list[str],
        allow_all_exit_codes: bool = False,
        silent: bool = False,
        listener: ExecListener | None = None,
    ) -> GitExecOutput:
        if not self._initialized:
            raise ConfigurationError("Git command manager is not initialized")
        return self._exec(args, allow_all_exit_codes, silent, listener)

    def _exec(
        self,
        args: list[str],
        allow_all_exit_codes: bool = False,
        silent: bool = False,
        listener: ExecListener | None = None,
    ) -> GitExecOutput:
        fs_helper.directory_exists(self._working_directory, required=True)

        result = GitExecOutput()
        sink = listener or ExecListener()
        env = {**self._base_env, **self._git_env}
        command = [self._git_path, *args]

        for line in (f"exec tool: {self._git_path}", f"arguments: {' '.join(args)}"):
            result.add_debug_line(line)
            sink.on_debug(line)
        if not silent:
            logger.info("[command]%s", " ".join(command))

        completed = self._runner(command, cwd=self._working_directory, env=env)

        for line in (completed.stdout or "").splitlines():
            result.add_stdout_line(line)
            sink.on_stdout(line)
            if not silent:
                logger.info(line)
        for line in (completed.stderr or "").splitlines():
            result.add_stderr_line(line)
            sink.on_stderr(line)
            if not silent:
                logger.info(line)

        result.exit_code = completed.returncode
        sink.on_exit(completed.returncode)

        logger.debug("%s", result.exit_code)
        logger.debug(result.get_debug())
        logger.debug(result.get_stdout())
        logger.debug(result.get_stderr())
        self._emit("GitCommandCompleted", args=list(args), exit_code=completed.returncode, silent=silent)

        if completed.returncode != 0 and not allow_all_exit_codes:
            raise GitCommandError(command, completed.returncode, result.get_stderr())
        return result

    def _emit(self, event_type: str, **data: Any) -> None:
        if self._emitter:
            self._emitter.emit(event_type, **data)

    # =========================================================================
    # Remote and Working Base
    # =========================================================================

    def get_repo_remote_url(self) -> str:
        result = self.exec_git(["config", "--get", "remote.origin.url"], True, True)
        return result.get_stdout().strip()

    def get_remote_detail(self, remote_url: str) -> RemoteDetail:
        server_url = self._config.server_url.rstrip("/")
        server_match = re.match(r"^https?://(.+)$", server_url, re.IGNORECASE)
        if not server_match:
            raise InvalidRemoteUrlError(server_url, f"'{server_url}' is not a valid server URL")
        host = server_match.group(1)

        pattern = re.compile(rf"^https?://.*@?{re.escape(host)}/(.+/.+?)(\.git)?$", re.IGNORECASE)
        match = pattern.match(remote_url)
        if not match:
            raise InvalidRemoteUrlError(remote_url)
        return RemoteDetail(hostname=host, protocol="HTTPS", repository=match.group(1))

    def get_working_base_and_type(self) -> WorkingBase:
        ref = self._config.ref
        if "/pull/" in ref:
            pull_name = ref[len("refs/pull/"):]
            return WorkingBase(
                working_base=f"refs/remotes/pull/{pull_name}",
                working_base_type=WorkingBaseType.PULL,
            )

        symbolic_ref = self.exec_git(["symbolic-ref", "HEAD", "--short"], True)
        if symbolic_ref.exit_code == 0:
            return WorkingBase(
                working_base=symbolic_ref.get_stdout().strip(),
                working_base_type=WorkingBaseType.BRANCH,
            )

        # Detached HEAD
        return WorkingBase(working_base=self.rev_parse("HEAD"), working_base_type=WorkingBaseType.COMMIT)

    def get_default_branch(self, repository_url: str) -> str:
        output = self._retry_helper.execute(
            lambda: self.exec_git(["ls-remote", "--quiet", "--exit-code", "--symref", repository_url, "HEAD"])
        )

        for line in output.get_stdout().strip().split("\n"):
            line = line.strip()
            if line.startswith("ref:") or line.endswith("HEAD"):
                return line[len("ref:"):len(line) - len("HEAD")].strip()

        raise UnexpectedOutputError("Unexpected output when retrieving default branch")

    def remote_add(self, remote_name: str, remote_url: str) -> None:
        self.exec_git(["remote", "add", remote_name, remote_url])

    def try_get_fetch_url(self) -> str:
        output = self.exec_git(["config", "--local", "--get", "remote.origin.url"], True)
        if output.exit_code != 0:
            return ""

        stdout = output.get_stdout().strip()
        if "\n" in stdout:
            return ""
        return stdout

    # =========================================================================
    # Stash
    # =========================================================================

    def stash_push(self, options: list[str] | None = None) -> bool:
        output = self.exec_git(["stash", "push", *(options or [])])
        return output.get_stdout().strip() != "No local changes to save"

    def stash_pop(self, options: list[str] | None = None) -> None:
        self.exec_git(["stash", "pop", *(options or [])])

    # =========================================================================
    # Branches and Refs
    # =========================================================================

    def branch_delete(self, remote: bool, branch: str) -> None:
        args = ["branch", "--delete", "--force"]
        if remote:
            args.append("--remote")
        args.append(branch)
        self.exec_git(args)

    def branch_exists(self, remote: bool, pattern: str) -> bool:
        args = ["branch", "--list"]
        if remote:
            args.append("--remote")
        args.append(pattern)
        output = self.exec_git(args)
        return bool(output.get_stdout().strip())

    def branch_list(self, remote: bool) -> list[str]:
        # "rev-parse --symbolic-full-name" instead of "branch --list": the latter is
        # awkward in detached HEAD, and "rev-parse --symbolic" prints full names on 2.18.
        args = ["rev-parse", "--symbolic-full-name"]
        args.append("--remotes=origin" if remote else "--branches")

        collector = _LineCollector()
        # Empty repositories write innocuous errors to stderr; keep them out of the log.
        self.exec_git(args, False, True, collector)
        logger.debug("stderr callback is: %s", collector.stderr)
        logger.debug("stdout callback is: %s", collector.stdout)

        result: list[str] = []
        for branch in collector.stdout:
            branch = branch.strip()
            if not branch:
                continue
            if branch.startswith("refs/heads/"):
                branch = branch[len("refs/heads/"):]
            elif branch.startswith("refs/remotes/"):
                branch = branch[len("refs/remotes/"):]
            result.append(branch)
        return result

    def delete_branch(self, branch_name: str, options: list[str] | None = None) -> None:
        self.exec_git(["branch", "--delete", *(options or []), branch_name])

    def is_detached(self) -> bool:
        # "branch --show-current" would be simpler but needs git 2.22
        output = self.exec_git(["rev-parse", "--symbolic-full-name", "--verify", "--quiet", "HEAD"], True)
        return not output.get_stdout().strip().startswith("refs/heads/")

    def rev_parse(self, ref: str) -> str:
        """Resolve a ref to a SHA.

        Branches and lightweight tags resolve to the commit SHA; annotated
        tags resolve to the tag object SHA.
        """
        output = self.exec_git(["rev-parse", ref])
        return output.get_stdout().strip()

    def sha_exists(self, sha: str) -> bool:
        output = self.exec_git(["rev-parse", "--verify", "--quiet", f"{sha}^{{object}}"], True)
        return output.exit_code == 0

    def tag_exists(self, pattern: str) -> bool:
        output = self.exec_git(["tag", "--list", pattern])
        return bool(output.get_stdout().strip())

    # =========================================================================
    # Checkout
    # =========================================================================

    def sparse_checkout(self, sparse_checkout: list[str]) -> None:
        self.exec_git(["sparse-checkout", "set", *sparse_checkout])

    def sparse_checkout_non_cone_mode(self, sparse_checkout: list[str]) -> None:
        self.exec_git(["config", "core.sparseCheckout", "true"])
        output = self.exec_git(["rev-parse", "--git-path", "info/sparse-checkout"])
        sparse_checkout_path = self._working_directory / output.get_stdout().rstrip()
        sparse_checkout_path.parent.mkdir(parents=True, exist_ok=True)
        with open(sparse_checkout_path, "a") as f:
            f.write("\n" + "\n".join(sparse_checkout) + "\n")

    def checkout(self, ref: str, start_point: str | None = None) -> None:
        args = ["checkout", "--progress", "--force"]
        if start_point:
            args.extend(["-B", ref, start_point])
        else:
            args.append(ref)
        self.exec_git(args)

    def checkout_detach(self) -> None:
        self.exec_git(["checkout", "--detach"])

    def init(self) -> None:
        self.exec_git(["init", str(self._working_directory)])

    def try_clean(self) -> bool:
        output = self.exec_git(["clean", "-ffdx"], True)
        return output.exit_code == 0

    def try_reset(self) -> bool:
        output = self.exec_git(["reset", "--hard", "HEAD"], True)
        return output.exit_code == 0

    # =========================================================================
    # Config
    # =========================================================================

    def config(
        self,
        config_key: str,
        config_value: str,
        global_config: bool = False,
        add: bool = False,
    ) -> None:
        args = ["config", "--global" if global_config else "--local"]
        if add:
            args.append("--add")
        args.extend([config_key, config_value])
        self.exec_git(args)

    def config_exists(self, config_key: str, global_config: bool = False) -> bool:
        pattern = regexp_helper.escape(config_key)
        output = self.exec_git(
            ["config", "--global" if global_config else "--local", "--name-only", "--get-regexp", pattern],
            True,
        )
        return output.exit_code == 0

    def try_config_unset(self, config_key: str, global_config: bool = False) -> bool:
        output = self.exec_git(
            ["config", "--global" if global_config else "--local", "--unset-all", config_key],
            True,
        )
        return output.exit_code == 0

    def try_disable_automatic_garbage_collection(self) -> bool:
        output = self.exec_git(["config", "--local", "gc.auto", "0"], True)
        return output.exit_code == 0

    # =========================================================================
    # Fetch, Pull, Push
    # =========================================================================

    def fetch(self, remote: str, branch: str) -> FetchResult:
        return self.fetch_remote(
            [f"{branch}:refs/remotes/{remote}/{branch}"],
            options=["--force"],
            remote_name=remote,
        )

    def fetch_remote(
        self,
        ref_spec: list[str],
        *,
        filter: str | None = None,
        fetch_depth: int | None = None,
        fetch_tags: bool = False,
        show_progress: bool = False,
        options: list[str] | None = None,
        remote_name: str | None = None,
    ) -> FetchResult:
        remote = remote_name or "origin"
        try:
            args = self._fetch_args(
                ref_spec,
                filter=filter,
                fetch_depth=fetch_depth,
                fetch_tags=fetch_tags,
                show_progress=show_progress,
                options=options,
                remote=remote,
            )
            self._retry_helper.execute(lambda: self.exec_git(args))
            result = FetchResult(FetchStatus.OK)
        except Exception as e:
            result = FetchResult(_classify_fetch_error(e), e)
            logger.warning("Fetch from '%s' failed: %s", remote, e)

        self._emit(
            "FetchCompleted",
            remote=remote,
            ref_spec=list(ref_spec),
            status=result.status.value,
            error=str(result.error) if result.error else "",
        )
        return result

    def _fetch_args(
        self,
        ref_spec: list[str],
        *,
        filter: str | None,
        fetch_depth: int | None,
        fetch_tags: bool,
        show_progress: bool,
        options: list[str] | None,
        remote: str,
    ) -> list[str]:
        args = ["-c", "protocol.version=2", "fetch"]
        if TAGS_REF_SPEC not in ref_spec and not fetch_tags:
            args.append("--no-tags")

        args.extend(["--prune", "--no-recurse-submodules"])
        if show_progress:
            args.append("--progress")
        if filter:
            args.append(f"--filter={filter}")
        if options:
            args.extend(options)

        if fetch_depth and fetch_depth > 0:
            args.append(f"--depth={fetch_depth}")
        elif fs_helper.file_exists(self._working_directory / ".git" / "shallow"):
            args.append("--unshallow")

        args.append(remote)
        args.extend(ref_spec)
        return args

    def fetch_all(self) -> None:
        self.exec_git(["fetch"])

    def pull(self, options: list[str] | None = None) -> None:
        self.exec_git(["pull", *(options or [])])

    def push(self, options: list[str] | None = None) -> None:
        self.exec_git(["push", *(options or [])])

    # =========================================================================
    # Ahead / Behind
    # =========================================================================

    def commits_ahead(self, branch1: str, branch2: str, options: list[str] | None = None) -> int:
        result = self._rev_list([f"{branch1}...{branch2}"], ["--right-only", "--count"], options)
        return int(result)

    def commits_behind(self, branch1: str, branch2: str, options: list[str] | None = None) -> int:
        result = self._rev_list([f"{branch1}...{branch2}"], ["--left-only", "--count"], options)
        return int(result)

    def is_ahead(self, branch1: str, branch2: str, options: list[str] | None = None) -> bool:
        return self.commits_ahead(branch1, branch2, options) > 0

    def is_behind(self, branch1: str, branch2: str, options: list[str] | None = None) -> bool:
        return self.commits_behind(branch1, branch2, options) > 0

    def is_even(self, branch1: str, branch2: str) -> bool:
        return not self.is_ahead(branch1, branch2) and not self.is_behind(branch1, branch2)

    def _rev_list(
        self,
        commit_expression: list[str],
        args: list[str] | None = None,
        options: list[str] | None = None,
    ) -> str:
        output = self.exec_git(["rev-list", *(args or []), *commit_expression, *(options or [])])
        return output.get_stdout().strip()

    def has_diff(self, options: list[str] | None = None) -> bool:
        output = self.exec_git(["diff", "--quiet", *(options or [])], True)
        return output.exit_code == 1

    def log1(self, format: str | None = None) -> str:
        args = ["log", "-1", format] if format else ["log", "-1"]
        output = self.exec_git(args, False, not format)
        return output.get_stdout()

    # =========================================================================
    # LFS
    # =========================================================================

    def lfs_fetch(self, ref: str) -> None:
        args = ["lfs", "fetch", "origin", ref]
        self._retry_helper.execute(lambda: self.exec_git(args))

    def lfs_install(self) -> None:
        self.exec_git(["lfs", "install", "--local"])

    # =========================================================================
    # Submodules
    # =========================================================================

    def submodule_foreach(self, command: str, recursive: bool) -> str:
        args = ["submodule", "foreach"]
        if recursive:
            args.append("--recursive")
        args.append(command)
        output = self.exec_git(args)
        return output.get_stdout()

    def submodule_sync(self, recursive: bool) -> None:
        args = ["submodule", "sync"]
        if recursive:
            args.append("--recursive")
        self.exec_git(args)

    def submodule_update(self, fetch_depth: int, recursive: bool) -> None:
        args = ["-c", "protocol.version=2", "submodule", "update", "--init", "--force"]
        if fetch_depth > 0:
            args.append(f"--depth={fetch_depth}")
        if recursive:
            args.append("--recursive")
        self.exec_git(args)

    def submodule_status(self) -> bool:
        output = self.exec_git(["submodule", "status"], True)
        logger.debug(output.get_stdout())
        return output.exit_code == 0

    # =========================================================================
    # Environment
    # =========================================================================

    def set_environment_variable(self, name: str, value: str) -> None:
        self._git_env[name] = value

    def remove_environment_variable(self, name: str) -> None:
        self._git_env.pop(name, None)

    def refresh_environment(self, environ: Mapping[str, str] | None = None) -> None:
        """Re-snapshot the inherited environment the overlay is layered on."""
        self._base_env = dict(os.environ if environ is None else environ)

    # =========================================================================
    # Properties
    # =========================================================================

    def get_working_directory(self) -> Path:
        return self._working_directory

    @property
    def git_env(self) -> dict[str, str]:
        return self._git_env

    @property
    def git_path(self) -> str:
        return self._git_path

    @property
    def git_version(self) -> GitVersion:
        return self._git_version

    @property
    def lfs(self) -> bool:
        return self._lfs

    @property
    def do_sparse_checkout(self) -> bool:
        return self._do_sparse_checkout

    @property
    def working_directory(self) -> Path:
        return self._working_directory

    @property
    def retry_helper(self) -> RetryHelper:
        return self._retry_helper


def _classify_fetch_error(error: Exception) -> FetchStatus:
    if isinstance(error, GitCommandError):
        return FetchStatus.COMMAND_FAILED
    if isinstance(error, GitVersionError):
        return FetchStatus.VERSION_ERROR
    if isinstance(error, ConfigurationError):
        return FetchStatus.CONFIGURATION_ERROR
    return FetchStatus.UNEXPECTED_ERROR


def create_git_command_manager(
    working_directory: str | Path,
    lfs: bool = False,
    do_sparse_checkout: bool = False,
    **kwargs: Any,
) -> GitCommandManager:
    manager = GitCommandManager(working_directory, lfs, do_sparse_checkout, **kwargs)
    manager.initialize()
    return manager
