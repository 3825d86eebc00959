"""Tests for fhevm_examples.scaffold."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fhevm_examples.commands import CommandRunner
from fhevm_examples.config import FactoryConfig
from fhevm_examples.fetch import FetchError, RemoteSource
from fhevm_examples.manifest import Manifest, build_categories
from fhevm_examples.models import ExampleEntry
from fhevm_examples.prompts import OperationCancelled
from fhevm_examples.scaffold import ConflictAction, Scaffolder, ScaffoldError, renamed_path
from tests._fixtures.fakes import FakeFetcher, FakeRunner, ScriptedPrompter, failing

FHE_ADD = ExampleEntry(
    name="fhe-add",
    contract_path="contracts/basic/fhe-operations/FHEAdd.sol",
    test_path="test/basic/fhe-operations/FHEAdd.ts",
    description="Addition operations on encrypted values.",
    category="FHE Operations",
    title="FHE Add Operation",
    docs_output="docs/fhe-add.md",
)

ERC7984 = ExampleEntry(
    name="erc7984",
    contract_path="contracts/openzeppelin/ERC7984.sol",
    test_path="test/openzeppelin/ERC7984.ts",
    description="Confidential token.",
    category="OpenZeppelin",
    title="ERC7984 Tutorial",
    docs_output="docs/openzeppelin/erc7984.md",
    dependencies=["contracts/openzeppelin/mocks/ERC20Mock.sol"],
    npm_dependencies={"@openzeppelin/confidential-contracts": "^0.3.0"},
)

REMOTE_FILES = {
    FHE_ADD.contract_path: "// remote FHEAdd\n",
    FHE_ADD.test_path: "// remote FHEAdd test\n",
    ERC7984.contract_path: "// remote ERC7984\n",
    ERC7984.test_path: "// remote ERC7984 test\n",
    "contracts/openzeppelin/mocks/ERC20Mock.sol": "// remote mock\n",
}


def _scaffolder(
    prompter: ScriptedPrompter | None = None,
    fetcher: FakeFetcher | None = None,
    runner: FakeRunner | None = None,
) -> Scaffolder:
    config = FactoryConfig(root=Path("."))
    source = RemoteSource(config.repo_url, config.branch, fetcher=fetcher or FakeFetcher(REMOTE_FILES))
    return Scaffolder(
        config,
        source,
        prompter or ScriptedPrompter(),
        runner=CommandRunner(runner or FakeRunner()),
    )


def test_renamed_path_appends_suffix() -> None:
    assert renamed_path(Path("contracts/FHEAdd.sol")) == Path("contracts/FHEAdd_fhevm.sol")
    assert renamed_path(Path("test/FHEAdd.ts"), "_copy") == Path("test/FHEAdd_copy.ts")


def test_add_example_files_without_conflicts(hardhat_project: Path) -> None:
    prompter = ScriptedPrompter()

    report = _scaffolder(prompter).add_example_files(FHE_ADD, hardhat_project)

    assert (hardhat_project / "contracts" / "FHEAdd.sol").read_text() == "// remote FHEAdd\n"
    assert (hardhat_project / "test" / "FHEAdd.ts").read_text() == "// remote FHEAdd test\n"
    assert [item.action for item in report.files] == ["added", "added"]
    assert prompter.messages == []


def test_conflict_skip_leaves_file_and_fetches_nothing(hardhat_project: Path) -> None:
    existing = hardhat_project / "contracts" / "FHEAdd.sol"
    existing.parent.mkdir(parents=True)
    existing.write_text("// mine\n", encoding="utf-8")
    fetcher = FakeFetcher(REMOTE_FILES)
    prompter = ScriptedPrompter([ConflictAction.SKIP.value])

    report = _scaffolder(prompter, fetcher).add_example_files(FHE_ADD, hardhat_project)

    assert existing.read_text() == "// mine\n"
    assert fetcher.paths == [FHE_ADD.test_path]
    assert report.files[0].action == "skipped"
    assert prompter.messages == ["FHEAdd.sol already exists. What do you want to do?"]
    assert [option.value for option in prompter.options[0]] == ["skip", "overwrite", "rename"]


def test_conflict_overwrite_replaces_content(hardhat_project: Path) -> None:
    existing = hardhat_project / "test" / "FHEAdd.ts"
    existing.parent.mkdir(parents=True)
    existing.write_text("// mine\n", encoding="utf-8")

    report = _scaffolder(ScriptedPrompter(["overwrite"])).add_example_files(FHE_ADD, hardhat_project)

    assert existing.read_text() == "// remote FHEAdd test\n"
    assert report.files[1].action == "overwritten"


def test_conflict_rename_keeps_original(hardhat_project: Path) -> None:
    existing = hardhat_project / "contracts" / "FHEAdd.sol"
    existing.parent.mkdir(parents=True)
    existing.write_text("// mine\n", encoding="utf-8")

    report = _scaffolder(ScriptedPrompter(["rename"])).add_example_files(FHE_ADD, hardhat_project)

    assert existing.read_text() == "// mine\n"
    renamed = hardhat_project / "contracts" / "FHEAdd_fhevm.sol"
    assert renamed.read_text() == "// remote FHEAdd\n"
    assert report.files[0].destination == renamed


def test_cancelled_conflict_prompt_aborts_before_writing(hardhat_project: Path) -> None:
    existing = hardhat_project / "contracts" / "FHEAdd.sol"
    existing.parent.mkdir(parents=True)
    existing.write_text("// mine\n", encoding="utf-8")
    fetcher = FakeFetcher(REMOTE_FILES)

    with pytest.raises(OperationCancelled):
        _scaffolder(ScriptedPrompter([None]), fetcher).add_example_files(FHE_ADD, hardhat_project)

    assert fetcher.urls == []
    assert not (hardhat_project / "test" / "FHEAdd.ts").exists()


def test_dependencies_and_npm_packages_are_added_once(hardhat_project: Path) -> None:
    scaffolder = _scaffolder()
    scaffolder.add_example_files(ERC7984, hardhat_project)

    mock = hardhat_project / "contracts" / "openzeppelin" / "mocks" / "ERC20Mock.sol"
    assert mock.read_text() == "// remote mock\n"
    payload = json.loads((hardhat_project / "package.json").read_text())
    assert payload["dependencies"] == {"@openzeppelin/confidential-contracts": "^0.3.0"}

    mock.write_text("// edited\n", encoding="utf-8")
    prompter = ScriptedPrompter(["skip", "skip", "skip"])
    report = _scaffolder(prompter).add_example_files(ERC7984, hardhat_project)

    assert mock.read_text() == "// edited\n"
    assert prompter.messages[-1] == "ERC20Mock.sol already exists. What do you want to do?"
    assert [item.action for item in report.files] == ["skipped", "skipped", "skipped"]
    assert report.npm_added == []


@pytest.mark.parametrize(
    ("answer", "expected_file", "expected_content", "action"),
    [
        ("skip", "ERC20Mock.sol", "// mine\n", "skipped"),
        ("overwrite", "ERC20Mock.sol", "// remote mock\n", "overwritten"),
        ("rename", "ERC20Mock_fhevm.sol", "// remote mock\n", "added"),
    ],
)
def test_existing_dependency_file_goes_through_conflict_prompt(
    hardhat_project: Path, answer: str, expected_file: str, expected_content: str, action: str
) -> None:
    mocks = hardhat_project / "contracts" / "openzeppelin" / "mocks"
    mocks.mkdir(parents=True)
    (mocks / "ERC20Mock.sol").write_text("// mine\n", encoding="utf-8")
    prompter = ScriptedPrompter([answer])

    report = _scaffolder(prompter).add_example_files(ERC7984, hardhat_project)

    assert prompter.messages == ["ERC20Mock.sol already exists. What do you want to do?"]
    assert (mocks / expected_file).read_text() == expected_content
    assert report.files[2].destination == mocks / expected_file
    assert report.files[2].action == action
    if answer == "rename":
        assert (mocks / "ERC20Mock.sol").read_text() == "// mine\n"


def test_fetch_failure_propagates(hardhat_project: Path) -> None:
    with pytest.raises(FetchError):
        _scaffolder(fetcher=FakeFetcher({})).add_example_files(FHE_ADD, hardhat_project)
    assert not (hardhat_project / "contracts" / "FHEAdd.sol").exists()


def test_contract_name_must_be_derivable(hardhat_project: Path) -> None:
    broken = ExampleEntry(
        name="broken",
        contract_path="contracts/README.md",
        test_path="test/x.ts",
        description="",
        category="",
        title="",
        docs_output="docs/broken.md",
    )
    with pytest.raises(ScaffoldError, match="Could not extract contract name"):
        _scaffolder().add_example_files(broken, hardhat_project)


def test_create_single_example_builds_clean_project(tmp_path: Path, template_dir: Path) -> None:
    runner = FakeRunner()
    output = tmp_path / "my-fhe-add-project"

    _scaffolder(runner=runner).create_single_example(FHE_ADD, output, template_dir)

    assert (output / "contracts" / "FHEAdd.sol").read_text() == "// remote FHEAdd\n"
    assert (output / "test" / "FHEAdd.ts").read_text() == "// remote FHEAdd test\n"
    assert not (output / "contracts" / "FHECounter.sol").exists()
    assert not (output / "contracts" / ".gitkeep").exists()
    assert not (output / "test" / "FHECounter.ts").exists()
    assert not (output / "tasks").exists()
    assert not (output / ".github").exists()
    assert not (output / ".git").exists()
    assert not (output / "node_modules").exists()
    assert not (output / "artifacts").exists()
    assert (output / "README.md").exists()
    assert (output / ".gitignore").exists()
    assert "interface Signers" in (output / "test" / "types.ts").read_text()

    config_source = (output / "hardhat.config.ts").read_text()
    assert "./tasks/" not in config_source
    assert 'import "@fhevm/hardhat-plugin";' in config_source

    deploy = (output / "deploy" / "deploy.ts").read_text()
    assert 'deploy("FHEAdd"' in deploy
    assert 'func.id = "deploy_fheadd";' in deploy

    payload = json.loads((output / "package.json").read_text())
    assert payload["name"] == "fhevm-example-fhe-add"
    assert payload["description"] == FHE_ADD.description
    assert "minimatch" not in payload["overrides"]
    assert runner.calls == [(["git", "init"], output)]


def test_create_single_example_ignores_git_init_failure(tmp_path: Path, template_dir: Path) -> None:
    runner = FakeRunner({("git", "init"): failing("git: command not found")})
    output = tmp_path / "out"

    _scaffolder(runner=runner).create_single_example(FHE_ADD, output, template_dir)

    assert (output / "contracts" / "FHEAdd.sol").exists()


def test_create_category_project_collects_dependencies(tmp_path: Path, template_dir: Path) -> None:
    entries = [FHE_ADD, ERC7984]
    manifest = Manifest(
        {entry.name: entry for entry in entries},
        build_categories(entries, ["FHE Operations", "OpenZeppelin"]),
    )
    output = tmp_path / "my-openzeppelin-examples"

    report = _scaffolder().create_category_project("openzeppelin", manifest, output, template_dir)

    assert (output / "contracts" / "ERC7984.sol").exists()
    assert (output / "test" / "ERC7984.ts").exists()
    assert (output / "contracts" / "openzeppelin" / "mocks" / "ERC20Mock.sol").exists()
    assert not (output / "contracts" / "FHEAdd.sol").exists()
    payload = json.loads((output / "package.json").read_text())
    assert payload["name"] == "fhevm-examples-openzeppelin"
    assert payload["dependencies"]["@openzeppelin/confidential-contracts"] == "^0.3.0"
    assert report.npm_added == ["@openzeppelin/confidential-contracts"]


def test_create_category_project_rejects_unknown_key(tmp_path: Path, template_dir: Path) -> None:
    manifest = Manifest({}, {})
    with pytest.raises(ScaffoldError, match="Unknown category"):
        _scaffolder().create_category_project("nope", manifest, tmp_path / "out", template_dir)
    assert not (tmp_path / "out").exists()
