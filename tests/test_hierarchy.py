"""Tests for flattening the folder tree."""

from __future__ import annotations

import pytest

from jenkins_remote.errors import DecodeError
from jenkins_remote.hierarchy import FlattenedJob, NodeKind, classify, walk
from jenkins_remote.models import JobEntry, JobListing
from jenkins_remote.paths import ROOT, ResourcePath, to_job_segments

FOLDER = "com.cloudbees.hudson.plugins.folder.Folder"
FREESTYLE = "hudson.model.FreeStyleProject"
PIPELINE = "org.jenkinsci.plugins.workflow.job.WorkflowJob"


def _entry(full_name: str, class_name: str) -> JobEntry:
    name = full_name.rsplit("/", 1)[-1]
    return JobEntry(class_=class_name, full_name=full_name, name=name, full_display_name=full_name)


class FakeNamespace:
    """Maps folder paths to their listings and records every expansion."""

    def __init__(self, tree: dict[str, list[JobEntry]]):
        self.tree = tree
        self.calls: list[str] = []

    def __call__(self, folder: ResourcePath) -> JobListing:
        key = str(folder)
        self.calls.append(key)
        return JobListing(jobs=self.tree[key])


NAMESPACE = {
    "": [_entry("F", FOLDER), _entry("top", FREESTYLE)],
    "F": [_entry("F/A", FREESTYLE), _entry("F/B", PIPELINE), _entry("F/G", FOLDER)],
    "F/G": [_entry("F/G/C", FREESTYLE)],
}


class TestClassify:
    @pytest.mark.parametrize("class_name", [
        FOLDER,
        "jenkins.branch.OrganizationFolder",
        "org.jenkinsci.plugins.workflow.multibranch.WorkflowMultiBranchProject",
        "com.example.custom.Folder",
    ])
    def test_folders(self, class_name):
        assert classify(class_name) is NodeKind.FOLDER

    @pytest.mark.parametrize("class_name", [FREESTYLE, PIPELINE, "hudson.matrix.MatrixProject", ""])
    def test_leaves(self, class_name):
        assert classify(class_name) is NodeKind.LEAF


class TestWalk:
    def test_depth_first_order_and_breadcrumbs(self):
        jobs = list(walk(FakeNamespace(NAMESPACE)))
        assert jobs == [
            FlattenedJob(("F",), "A"),
            FlattenedJob(("F",), "B"),
            FlattenedJob(("F", "G"), "C"),
            FlattenedJob((), "top"),
        ]
        assert [j.full_name for j in jobs] == ["F/A", "F/B", "F/G/C", "top"]

    def test_folders_expanded_once_each_in_order(self):
        namespace = FakeNamespace(NAMESPACE)
        list(walk(namespace))
        assert namespace.calls == ["", "F", "F/G"]

    def test_start_from_folder(self):
        jobs = list(walk(FakeNamespace(NAMESPACE), to_job_segments("F")))
        assert [j.full_name for j in jobs] == ["F/A", "F/B", "F/G/C"]

    def test_empty_folder_reported(self):
        namespace = FakeNamespace({"": [_entry("Empty", FOLDER)], "Empty": []})
        assert list(walk(namespace)) == [FlattenedJob((), "Empty", is_folder=True)]

    def test_empty_root(self):
        assert list(walk(FakeNamespace({"": []}), ROOT)) == []

    def test_deep_nesting_does_not_recurse(self):
        depth = 2000
        tree = {}
        path = ""
        for i in range(depth):
            name = f"d{i}"
            child = f"{path}/{name}" if path else name
            tree[path] = [_entry(child, FOLDER)]
            path = child
        tree[path] = [_entry(f"{path}/leaf", FREESTYLE)]

        jobs = list(walk(FakeNamespace(tree)))
        assert len(jobs) == 1
        assert len(jobs[0].breadcrumb) == depth

    def test_lazy(self):
        namespace = FakeNamespace(NAMESPACE)
        gen = walk(namespace)
        assert next(gen) == FlattenedJob(("F",), "A")
        assert namespace.calls == ["", "F"]

    def test_failure_propagates(self):
        def _broken(folder):
            if str(folder) == "F":
                raise DecodeError("JobListing", "bad")
            return JobListing(jobs=NAMESPACE[str(folder)])

        with pytest.raises(DecodeError):
            list(walk(_broken))
