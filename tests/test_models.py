"""Tests for the result record."""

import json

from pilreg_py.models.image_data import ImageData, results_to_json


def test_add_error_appends():
    image = ImageData(reference="reg1/app:v1")

    image.add_error("manifest unknown")
    image.add_error("pull failed")

    assert image.failed
    assert image.error == "manifest unknown; pull failed"


def test_results_to_json_uses_published_field_names():
    images = [
        ImageData(
            reference="reg1/app:v1",
            registry="reg1",
            repository="app",
            tag="v1",
            manifest="{}",
        ),
        ImageData(reference="", error="No registries supplied"),
    ]

    decoded = json.loads(results_to_json(images))

    assert decoded == [
        {
            "Reference": "reg1/app:v1",
            "Registry": "reg1",
            "Repository": "app",
            "Tag": "v1",
            "Manifest": "{}",
            "Config": "",
            "Error": None,
        },
        {
            "Reference": "",
            "Registry": "",
            "Repository": "",
            "Tag": "",
            "Manifest": "",
            "Config": "",
            "Error": "No registries supplied",
        },
    ]


def test_empty_results_serialize_to_empty_array():
    assert results_to_json([]) == "[]"
