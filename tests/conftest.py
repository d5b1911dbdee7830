"""Shared fixtures for all tests."""

import io
import os

import pytest
from PIL import Image


@pytest.fixture
def make_image():
    """Factory for encoded test images.

    Noisy images compress badly, which makes the size-reduction loop observable.
    """
    def _make(width: int, height: int, fmt: str = "PNG", mode: str = "RGB",
              noisy: bool = False) -> bytes:
        if noisy:
            image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
            if mode != "RGB":
                image = image.convert(mode)
        else:
            color = (34, 139, 34, 128) if mode == "RGBA" else (34, 139, 34)
            image = Image.new(mode, (width, height), color if mode in ("RGB", "RGBA") else 0)
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


def _similar(prefix: str, n: int) -> list[dict]:
    return [
        {"id": f"{prefix}-img-{i}", "url": f"https://img.example/{prefix}/{i}.jpg", "similarity": 0.9 - i / 10}
        for i in range(n)
    ]


@pytest.fixture
def plant_id_result() -> dict:
    """Plant.id `result` object with every optional field populated."""
    return {
        "is_plant": {"binary": True, "probability": 0.98, "threshold": 0.5},
        "classification": {
            "version": "1.2.3",
            "suggestions": [
                {
                    "id": "a1",
                    "name": "Monstera deliciosa",
                    "probability": 0.91,
                    "confirmed": True,
                    "details": {
                        "scientific_name": "Monstera deliciosa Liebm.",
                        "common_names": ["Swiss cheese plant", "Split-leaf philodendron"],
                        "url": "https://en.wikipedia.org/wiki/Monstera_deliciosa",
                        "description": {"value": "A species of flowering plant native to tropical forests."},
                        "synonyms": ["Philodendron pertusum"],
                        "image": {"value": "https://img.example/monstera.jpg"},
                    },
                    "similar_images": _similar("a1", 2),
                },
                {
                    "id": "a2",
                    "name": "Monstera adansonii",
                    "probability": 0.05,
                    "details": {},
                },
            ],
        },
        "health_assessment": {
            "is_healthy": {"binary": False, "probability": 0.12},
            "diseases": [
                {
                    "id": "d1",
                    "name": "Fungi",
                    "probability": 0.64,
                    "disease_details": {
                        "description": "Fungal infection of the leaf tissue.",
                        "treatment": {"biological": ["Neem oil"], "chemical": ["Copper fungicide"]},
                        "cause": "Overwatering",
                        "url": "https://en.wikipedia.org/wiki/Fungus",
                    },
                    "similar_images": _similar("d1", 1),
                },
            ],
        },
        "custom_id": 42,
    }


@pytest.fixture
def plant_id_body(plant_id_result) -> dict:
    return {"access_token": "tok", "model_version": "plant_id:3.6", "result": plant_id_result}
