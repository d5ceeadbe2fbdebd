"""
Content Loader

Loads species and transformations from a content directory laid out as::

    <root>/Species/<Name>/Species.yml
    <root>/Species/<Name>/<Part>.yml
    <root>/Species/<Name>/<script>.lua

Transformations for chiral parts must carry the uniform message variants;
all other transformations must not. Violations raise ContentValidationError
naming the offending file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

import yaml

from .bodyparts import Bodypart
from .colours import Colour, Pattern
from .models import TEMPLATE_SPECIES, Species, Transformation

logger = logging.getLogger("tfshift.content")

SPECIES_FILE = "Species.yml"

UNIFORM_FIELDS = ("uniform_shift_message", "uniform_grow_message", "uniform_description")


class ContentValidationError(ValueError):
    """Raised when species or transformation content breaks a content rule."""


def validate_transformation(transformation: Transformation, source: str = "<memory>") -> None:
    part = transformation.part
    if part.is_composite:
        raise ContentValidationError(f"{source}: transformations cannot target composite part {part.value}.")
    present = [name for name in UNIFORM_FIELDS if getattr(transformation, name)]
    if part.is_chiral:
        missing = [name for name in UNIFORM_FIELDS if name not in present]
        if missing:
            raise ContentValidationError(
                f"{source}: chiral part {part.value} is missing {', '.join(missing)}."
            )
    elif present:
        raise ContentValidationError(
            f"{source}: non-chiral part {part.value} must not define {', '.join(present)}."
        )
    for name in ("shift_message", "grow_message", "single_description"):
        if not getattr(transformation, name):
            raise ContentValidationError(f"{source}: {name} is required.")


class TransformationCatalogue:
    """In-memory index of species and their per-part transformations."""

    def __init__(self) -> None:
        self._species: Dict[str, Species] = {}
        self._transformations: Dict[Tuple[Bodypart, str], Transformation] = {}

    def add_species(self, species: Species) -> None:
        key = species.name.lower()
        if key in self._species:
            raise ContentValidationError(f"Species {species.name} is defined more than once.")
        self._species[key] = species

    def add_transformation(self, transformation: Transformation, source: str = "<memory>") -> None:
        validate_transformation(transformation, source)
        key = (transformation.part, transformation.species.name.lower())
        if key in self._transformations:
            raise ContentValidationError(
                f"{source}: {transformation.species.name} already has a {transformation.part.value} transformation."
            )
        if transformation.species.name.lower() not in self._species:
            self.add_species(transformation.species)
        self._transformations[key] = transformation

    @property
    def species(self) -> List[Species]:
        return sorted(self._species.values(), key=lambda item: item.name.lower())

    def get_species(self, name: str) -> Optional[Species]:
        return self._species.get(name.strip().lower())

    def get_transformation(self, bodypart: Bodypart, species: Species) -> Optional[Transformation]:
        return self._transformations.get((bodypart, species.name.lower()))

    def transformations_for_part(self, bodypart: Bodypart) -> List[Transformation]:
        return sorted(
            (tf for (part, _), tf in self._transformations.items() if part is bodypart),
            key=lambda tf: tf.species.name.lower(),
        )

    def transformations_for_species(self, species: Species) -> Dict[Bodypart, Transformation]:
        name = species.name.lower()
        return {part: tf for (part, key), tf in self._transformations.items() if key == name}

    def template(self) -> Dict[Bodypart, Transformation]:
        species = self.get_species(TEMPLATE_SPECIES)
        if species is None:
            raise ContentValidationError(f"No {TEMPLATE_SPECIES!r} species has been loaded.")
        return self.transformations_for_species(species)

    def __len__(self) -> int:
        return len(self._transformations)


def _read_yaml(path: Path) -> Mapping[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ContentValidationError(f"{path}: invalid YAML ({exc})") from exc
    if not isinstance(data, Mapping):
        raise ContentValidationError(f"{path}: expected a mapping at the top level.")
    return data


def _text(data: Mapping[str, object], key: str, path: Path, required: bool = False) -> Optional[str]:
    value = data.get(key)
    if value is None:
        if required:
            raise ContentValidationError(f"{path}: {key} is required.")
        return None
    if not isinstance(value, str):
        raise ContentValidationError(f"{path}: {key} must be text.")
    return value


def _colour(data: Mapping[str, object], key: str, path: Path, required: bool = False) -> Optional[Colour]:
    raw = _text(data, key, path, required=required)
    if raw is None:
        return None
    colour = Colour.parse(raw)
    if colour is None:
        raise ContentValidationError(f"{path}: could not parse {key} {raw!r} as a colour.")
    return colour


def _resolve_species(raw: Dict[str, Tuple[Path, Mapping[str, object]]]) -> Dict[str, Species]:
    resolved: Dict[str, Species] = {}

    def build(key: str, chain: Set[str]) -> Species:
        if key in resolved:
            return resolved[key]
        path, data = raw[key]
        if key in chain:
            raise ContentValidationError(f"{path}: species parent chain loops back to itself.")
        parent_name = _text(data, "parent", path)
        parent = None
        if parent_name:
            parent_key = parent_name.strip().lower()
            if parent_key not in raw:
                raise ContentValidationError(f"{path}: unknown parent species {parent_name!r}.")
            parent = build(parent_key, chain | {key})
        species = Species(
            name=_text(data, "name", path, required=True).strip(),
            description=_text(data, "description", path) or "",
            author=_text(data, "author", path) or "",
            parent=parent,
        )
        resolved[key] = species
        return species

    for key in raw:
        build(key, set())
    return resolved


def _load_transformation(path: Path, species: Species) -> Transformation:
    data = _read_yaml(path)
    part_name = _text(data, "part", path) or path.stem
    part = Bodypart.from_name(part_name)
    if part is None:
        raise ContentValidationError(f"{path}: unknown bodypart {part_name!r}.")

    pattern_name = _text(data, "default_pattern", path)
    pattern = Pattern.from_name(pattern_name)
    if pattern_name and pattern is None:
        raise ContentValidationError(f"{path}: unknown pattern {pattern_name!r}.")

    scripts: Dict[str, str] = {}
    raw_scripts = data.get("scripts") or {}
    if not isinstance(raw_scripts, Mapping):
        raise ContentValidationError(f"{path}: scripts must map names to .lua files.")
    for name, filename in raw_scripts.items():
        script_path = path.parent / str(filename)
        if not script_path.is_file():
            raise ContentValidationError(f"{path}: script file {filename} does not exist.")
        scripts[str(name)] = script_path.read_text(encoding="utf-8")

    is_nsfw = data.get("is_nsfw", False)
    if not isinstance(is_nsfw, bool):
        raise ContentValidationError(f"{path}: is_nsfw must be true or false.")

    return Transformation(
        part=part,
        species=species,
        description=_text(data, "description", path) or "",
        default_base_colour=_colour(data, "default_base_colour", path, required=True),
        shift_message=_text(data, "shift_message", path, required=True),
        grow_message=_text(data, "grow_message", path, required=True),
        single_description=_text(data, "single_description", path, required=True),
        default_pattern=pattern,
        default_pattern_colour=_colour(data, "default_pattern_colour", path),
        is_nsfw=is_nsfw,
        uniform_shift_message=_text(data, "uniform_shift_message", path),
        uniform_grow_message=_text(data, "uniform_grow_message", path),
        uniform_description=_text(data, "uniform_description", path),
        scripts=scripts,
    )


def _species_directories(root: Path) -> Iterable[Path]:
    species_root = root / "Species"
    if not species_root.is_dir():
        raise ContentValidationError(f"{root}: no Species directory found.")
    return sorted(entry for entry in species_root.iterdir() if entry.is_dir())


def load_catalogue(root: Path) -> TransformationCatalogue:
    """Load every species and transformation under ``root``."""
    raw: Dict[str, Tuple[Path, Mapping[str, object]]] = {}
    directories: Dict[str, Path] = {}
    for directory in _species_directories(root):
        species_file = directory / SPECIES_FILE
        if not species_file.is_file():
            logger.warning("Skipping %s: no %s", directory, SPECIES_FILE)
            continue
        data = _read_yaml(species_file)
        name = _text(data, "name", species_file) or directory.name
        key = name.strip().lower()
        if key in raw:
            raise ContentValidationError(f"{species_file}: species {name} is defined more than once.")
        raw[key] = (species_file, {**data, "name": name})
        directories[key] = directory

    catalogue = TransformationCatalogue()
    for key, species in _resolve_species(raw).items():
        catalogue.add_species(species)
        for path in sorted(directories[key].glob("*.yml")):
            if path.name == SPECIES_FILE:
                continue
            catalogue.add_transformation(_load_transformation(path, species), source=str(path))

    logger.info("Loaded %d species and %d transformations from %s", len(raw), len(catalogue), root)
    return catalogue


__all__ = [
    "ContentValidationError",
    "TransformationCatalogue",
    "load_catalogue",
    "validate_transformation",
]
