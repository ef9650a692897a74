"""
Core logic for OpenAPI Partitioner.
This module provides the reference-closure partitioner and the SDK entry point
that turns one OpenAPI document into per-operation and per-tag documents.
"""

import os
import re
import json
import yaml
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

from .external_docs import fetch_external_docs
from .flatten import dereference
from .overview import generate_llms_txt

# Configure logger
logger = logging.getLogger(__name__)

HTTP_METHODS = ('get', 'post', 'put', 'patch', 'delete', 'head', 'options', 'trace')

COMPONENT_TYPES = (
    'schemas',
    'parameters',
    'responses',
    'examples',
    'requestBodies',
    'headers',
    'securitySchemes',
    'links',
    'callbacks',
)

UNTAGGED = 'untagged'

SPEC_FILENAMES = ('openapi.json', 'openapi.yaml', 'openapi.yml')

OperationFilter = Callable[[Any, str, str], bool]

_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')


class OpenAPIPartitionerError(Exception):
    """Custom exception for OpenAPI Partitioner errors."""
    pass


def component_prefix(component_type: str) -> str:
    """Return the pointer prefix of a components category."""
    return f'#/components/{component_type}/'


def _collect_refs(obj: Any) -> Set[str]:
    refs = set()
    seen = set()
    stack = [obj]

    while stack:
        node = stack.pop()
        if isinstance(node, (dict, list)):
            # YAML anchors can share or nest nodes
            if id(node) in seen:
                continue
            seen.add(id(node))

        if isinstance(node, dict):
            for key, value in node.items():
                if key == '$ref' and isinstance(value, str):
                    refs.add(value)
                else:
                    stack.append(value)
        elif isinstance(node, list):
            stack.extend(node)

    return refs


def _unescape_pointer_token(token: str) -> str:
    return token.replace('~1', '/').replace('~0', '~')


def find_referenced(fragment: Any, candidates: Optional[Mapping[str, Any]], pointer_prefix: str) -> Set[str]:
    """
    Find the candidate definitions pointed to from within a fragment.

    Only pointers already present in the fragment are considered; pointers
    held by the candidate definitions themselves are not followed.

    Args:
        fragment: Any JSON-like value, typically a partial document
        candidates: Mapping of definition name to definition for one category
        pointer_prefix: Pointer prefix of that category, e.g. '#/components/schemas/'

    Returns:
        Set of candidate names referenced by the fragment
    """
    if fragment is None or not isinstance(candidates, Mapping) or not candidates:
        return set()

    found = set()
    for ref in _collect_refs(fragment):
        if not ref.startswith(pointer_prefix):
            continue
        remainder = ref[len(pointer_prefix):]
        if remainder in candidates:
            found.add(remainder)
            continue
        name = _unescape_pointer_token(remainder.split('/', 1)[0])
        if name in candidates:
            found.add(name)

    return found


def _select_components(
    subset: Dict[str, Any],
    components: Mapping[str, Any],
    transitive: bool,
) -> Dict[str, Set[str]]:
    selected: Dict[str, Set[str]] = {}
    fragment: Any = subset

    while True:
        added = []
        for component_type in COMPONENT_TYPES:
            candidates = components.get(component_type)
            if not isinstance(candidates, Mapping):
                continue
            names = find_referenced(fragment, candidates, component_prefix(component_type))
            new_names = names - selected.get(component_type, set())
            if new_names:
                selected.setdefault(component_type, set()).update(new_names)
                added.extend(candidates[name] for name in new_names)

        if not transitive or not added:
            return selected
        # Next pass scans only the definitions pulled in by this one
        fragment = added


def create_subset(
    document: Mapping[str, Any],
    selected_paths: Mapping[str, Iterable[str]],
    operation_filter: Optional[OperationFilter] = None,
    transitive: bool = True,
) -> Dict[str, Any]:
    """
    Build a self-contained document from a selection of operations.

    Args:
        document: The original, un-flattened OpenAPI document
        selected_paths: Mapping of path to the methods to keep on that path
        operation_filter: Optional predicate (operation, method, path) applied
            on top of the selection
        transitive: Follow pointers held by included definitions until no new
            definition is added; when False only pointers already present in
            the selected paths are followed

    Returns:
        Subset document with only the selected operations and the components
        they need
    """
    subset: Dict[str, Any] = {}
    for key in ('openapi', 'info', 'servers'):
        if key in document:
            subset[key] = document[key]
    subset['paths'] = {}

    source_paths = document.get('paths') or {}

    for path, methods in selected_paths.items():
        path_item = source_paths.get(path)
        if not isinstance(path_item, Mapping):
            continue

        wanted = {methods} if isinstance(methods, str) else set(methods)
        filtered_item = {}
        for method in HTTP_METHODS:
            if method not in wanted:
                continue
            operation = path_item.get(method)
            if operation is None:
                continue
            if operation_filter and not operation_filter(operation, method, path):
                continue
            filtered_item[method] = operation

        if filtered_item:
            subset['paths'][path] = filtered_item

    components = document.get('components')
    if not isinstance(components, Mapping):
        return subset

    selected = _select_components(subset, components, transitive)

    filtered_components = {}
    for component_type in COMPONENT_TYPES:
        names = selected.get(component_type)
        if not names:
            continue
        filtered_components[component_type] = {
            name: definition
            for name, definition in components[component_type].items()
            if name in names
        }

    if filtered_components:
        subset['components'] = filtered_components

    return subset


def derive_operation_id(path: str, method: str) -> str:
    """
    Derive an operation identifier from its path and method.

    '/pets/{id}' with 'delete' gives 'pets__id__delete'.
    """
    stem = path[1:] if path.startswith('/') else path
    return f"{_NON_ALNUM.sub('_', stem.lower())}_{method}"


def get_operation_id(operation: Any, path: str, method: str) -> str:
    """Return the explicit operationId, or the derived one when absent."""
    if isinstance(operation, Mapping):
        operation_id = operation.get('operationId')
        if operation_id:
            return str(operation_id)
    return derive_operation_id(path, method)


def get_operation_tags(operation: Any) -> List[str]:
    if isinstance(operation, Mapping):
        tags = operation.get('tags')
        if isinstance(tags, list):
            return tags
    return []


def iter_operations(document: Mapping[str, Any]) -> Iterator[Tuple[str, str, Any]]:
    """
    Iterate over every operation of a document.

    Yields:
        (path, method, operation) tuples in document order
    """
    for path, path_item in (document.get('paths') or {}).items():
        if not isinstance(path_item, Mapping):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if operation is not None:
                yield path, method, operation


def collect_tags(document: Mapping[str, Any]) -> List[str]:
    """Return the distinct tag names used by operations, in first-seen order."""
    tags: Dict[str, None] = {}
    for _, _, operation in iter_operations(document):
        for tag in get_operation_tags(operation):
            tags.setdefault(tag, None)
    return list(tags)


def _store(partitions: Dict[str, Dict[str, Any]], key: str, subset: Dict[str, Any]) -> None:
    if key in partitions:
        logger.warning(f"Duplicate partition '{key}', keeping the last one")
    partitions[key] = subset


def partition(document: Mapping[str, Any], transitive: bool = True) -> Dict[str, Dict[str, Any]]:
    """
    Partition a document into per-operation, per-tag and untagged subsets.

    Args:
        document: The original, un-flattened OpenAPI document
        transitive: Closure mode passed to create_subset

    Returns:
        Dictionary mapping output stems ('operations/<operationId>',
        'tags/<tag>', 'tags/untagged') to subset documents
    """
    partitions: Dict[str, Dict[str, Any]] = {}
    all_paths = {path: HTTP_METHODS for path in (document.get('paths') or {})}

    has_untagged = False
    for path, method, operation in iter_operations(document):
        operation_id = get_operation_id(operation, path, method)
        subset = create_subset(document, {path: (method,)}, transitive=transitive)
        _store(partitions, f'operations/{operation_id}', subset)
        if not get_operation_tags(operation):
            has_untagged = True

    for tag in collect_tags(document):
        subset = create_subset(
            document,
            all_paths,
            lambda operation, method, path, tag=tag: tag in get_operation_tags(operation),
            transitive=transitive,
        )
        _store(partitions, f'tags/{tag}', subset)

    if has_untagged:
        subset = create_subset(
            document,
            all_paths,
            lambda operation, method, path: not get_operation_tags(operation),
            transitive=transitive,
        )
        _store(partitions, f'tags/{UNTAGGED}', subset)

    logger.debug(f"Built {len(partitions)} partitions")
    return partitions


class NoAliasDumper(yaml.SafeDumper):
    """YAML dumper that writes shared nodes in full instead of as aliases."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


class OpenAPIPartitioner:
    """
    Main class for partitioning OpenAPI specifications.

    This class loads a spec, partitions it per operation and per tag while
    keeping only the components each partition needs, renders an llms.txt
    overview and writes everything to an output directory.
    """

    def __init__(
        self,
        input_path: Union[str, Path] = '.',
        output_dir: Union[str, Path] = '.',
        output_format: str = 'yaml',
        transitive: bool = True,
        fetch_docs: bool = True,
        timeout: Optional[float] = 30.0,
    ):
        """
        Initialize the OpenAPIPartitioner.

        Args:
            input_path: Spec file, or a directory holding openapi.json,
                openapi.yaml or openapi.yml
            output_dir: Directory for output files
            output_format: Output format ('yaml' or 'json')
            transitive: Include definitions referenced by other definitions
            fetch_docs: Fetch markdown behind externalDocs URLs
            timeout: Timeout in seconds for each externalDocs request

        Raises:
            OpenAPIPartitionerError: If no input file is found or format is invalid
        """
        self.input_file = self.find_spec_file(input_path)
        self.output_dir = Path(output_dir)
        self.output_format = output_format.lower()
        self.transitive = transitive
        self.fetch_docs = fetch_docs
        self.timeout = timeout
        self.spec = None

        if self.output_format not in ['yaml', 'json']:
            raise OpenAPIPartitionerError(f"Invalid output format: {self.output_format}")

    @staticmethod
    def find_spec_file(input_path: Union[str, Path]) -> Path:
        """
        Locate the spec file.

        Args:
            input_path: A spec file or a directory to search

        Returns:
            Path to the spec file

        Raises:
            OpenAPIPartitionerError: If nothing is found
        """
        input_path = Path(input_path)

        if input_path.is_dir():
            for filename in SPEC_FILENAMES:
                candidate = input_path / filename
                if candidate.is_file():
                    return candidate
            raise OpenAPIPartitionerError(
                f"No {', '.join(SPEC_FILENAMES[:-1])}, or {SPEC_FILENAMES[-1]} found in {input_path}"
            )

        if not input_path.exists():
            raise OpenAPIPartitionerError(f"Input file not found: {input_path}")

        return input_path

    @property
    def extension(self) -> str:
        return 'json' if self.output_format == 'json' else 'yaml'

    def load_spec(self) -> Dict[str, Any]:
        """
        Load the OpenAPI specification from file.

        Returns:
            Loaded OpenAPI specification

        Raises:
            OpenAPIPartitionerError: If loading fails
        """
        try:
            with open(self.input_file, 'r', encoding='utf-8') as f:
                if self.input_file.suffix.lower() in ['.yaml', '.yml']:
                    spec = yaml.safe_load(f)
                elif self.input_file.suffix.lower() == '.json':
                    spec = json.load(f)
                else:
                    # Try YAML first, then JSON
                    content = f.read()
                    try:
                        spec = yaml.safe_load(content)
                    except yaml.YAMLError:
                        try:
                            spec = json.loads(content)
                        except json.JSONDecodeError:
                            raise OpenAPIPartitionerError("Unable to parse file as YAML or JSON")
        except Exception as e:
            if isinstance(e, OpenAPIPartitionerError):
                raise
            raise OpenAPIPartitionerError(f"Error loading spec: {e}") from e

        if not isinstance(spec, dict):
            raise OpenAPIPartitionerError(f"Spec in {self.input_file} is not a mapping")

        self.spec = spec
        logger.info(f"Loaded OpenAPI spec from {self.input_file}")
        return self.spec

    def render(self, document: Dict[str, Any]) -> str:
        """
        Serialize a document in the configured output format.

        Pointers stay textual and shared nodes are written out in full.
        """
        if self.output_format == 'json':
            return json.dumps(document, indent=2, ensure_ascii=False, default=str) + '\n'
        return yaml.dump(document, Dumper=NoAliasDumper, default_flow_style=False, sort_keys=False,
                         allow_unicode=True, indent=2, width=1000)

    def _fetch_docs(self, docs: Any) -> Optional[str]:
        if not self.fetch_docs or not isinstance(docs, Mapping) or not docs.get('url'):
            return None
        return fetch_external_docs(docs['url'], timeout=self.timeout)

    def process(self, spec: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """
        Generate every output file for a spec.

        Args:
            spec: Spec to process; the loaded spec when omitted

        Returns:
            Dictionary mapping relative output paths to file contents

        Raises:
            OpenAPIPartitionerError: If processing fails; no partial output
                is returned
        """
        if spec is None:
            spec = self.spec if self.spec is not None else self.load_spec()

        files: Dict[str, str] = {}
        try:
            flattened = dereference(spec)
            files['llms.txt'] = generate_llms_txt(flattened, self.extension)

            for path, method, operation in iter_operations(spec):
                docs = self._fetch_docs(operation.get('externalDocs') if isinstance(operation, Mapping) else None)
                if docs:
                    files[f'operations/{get_operation_id(operation, path, method)}-docs.md'] = docs

            used_tags = set(collect_tags(spec))
            for tag in spec.get('tags') or []:
                if not isinstance(tag, Mapping) or tag.get('name') not in used_tags:
                    continue
                docs = self._fetch_docs(tag.get('externalDocs'))
                if docs:
                    files[f"tags/{tag['name']}-docs.md"] = docs

            # Partition the original spec so pointers stay pointers
            for stem, subset in partition(spec, self.transitive).items():
                files[f'{stem}.{self.extension}'] = self.render(subset)
        except Exception as e:
            logger.error(f"Error processing OpenAPI spec: {e}")
            raise OpenAPIPartitionerError(f"Error processing spec: {e}") from e

        return files

    def write_files(self, files: Dict[str, str]) -> List[Path]:
        """
        Write generated files under the output directory.

        Args:
            files: Dictionary mapping relative output paths to contents

        Returns:
            List of written file paths

        Raises:
            OpenAPIPartitionerError: If a path escapes the output directory
                or writing fails
        """
        root = self.output_dir.resolve()
        created_files = []

        for relative_path, content in files.items():
            filepath = (root / relative_path).resolve()
            if root not in filepath.parents:
                raise OpenAPIPartitionerError(f"Output path escapes {self.output_dir}: {relative_path}")

            try:
                os.makedirs(filepath.parent, exist_ok=True)
                with open(filepath, 'w', encoding='utf-8') as f:
                    f.write(content)
            except OSError as e:
                raise OpenAPIPartitionerError(f"Error writing {filepath}: {e}") from e

            logger.info(f"Created: {relative_path}")
            created_files.append(filepath)

        return created_files

    def split(self) -> List[Path]:
        """
        Main method: load, partition and write.

        Returns:
            List of created file paths
        """
        self.load_spec()
        files = self.process()
        created_files = self.write_files(files)

        logger.info(f"Generated {len(created_files)} files from {self.input_file.name}")
        return created_files
