"""
Repository-to-diagram renderers.

These renderers work on the ``RepositoryData`` fetched from GitHub: the root
listing, the language byte histogram and a bounded sample of source files.
Source files are analysed with shallow regular expressions only (imports,
class declarations, ``Component.method`` calls); nothing is parsed.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, Optional

from .models import CodeFile, RepositoryData

RepoRenderer = Callable[[str, str, RepositoryData], str]

MAX_LISTED_FILES = 10
COMPONENT_SUFFIXES = ("Controller", "Service", "Repository", "Component")

_JS_IMPORT = re.compile(r"""import\s+(?:{[^}]*}|\*\s+as\s+\w+|\w+)\s+from\s+['"]([^'"]+)['"]""")
_JS_REQUIRE = re.compile(r"""(?:const|let|var)\s+(?:{[^}]*}|\w+)\s*=\s*require\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_PY_IMPORT = re.compile(r"(?:from\s+(\S+)\s+import|import\s+(\S+))")

_JS_CLASS = re.compile(r"class\s+(\w+)(?:\s+extends\s+(\w+))?\s*{([^}]*)}", re.DOTALL)
_JS_METHOD = re.compile(r"^\s*(?:(public|private|protected)\s+)?(?:static\s+|async\s+)*(\w+)\s*\([^)]*\)\s*(?::\s*[\w<>\[\]]+\s*)?{?\s*$")
_JS_PROPERTY = re.compile(r"^\s*(?:(public|private|protected)\s+)?(?:readonly\s+)?(\w+)\s*(?::\s*(\w+))?\s*(?:=[^;]*)?;\s*$")
_PY_CLASS = re.compile(r"class\s+(\w+)(?:\(([^)]+)\))?\s*:")
_PY_DEF = re.compile(r"def\s+(\w+)\s*\([^)]*\)")

JS_KEYWORDS = {"if", "for", "while", "switch", "catch", "return", "constructor"}
VISIBILITY = {"public": "+", "private": "-", "protected": "#"}


@dataclass
class ClassMember:
    name: str
    visibility: str = "+"
    type: Optional[str] = None


@dataclass
class ClassInfo:
    name: str
    properties: list[ClassMember] = field(default_factory=list)
    methods: list[ClassMember] = field(default_factory=list)


@dataclass
class ClassRelation:
    parent: str
    child: str
    label: str


@dataclass
class Interaction:
    caller: str
    callee: str
    message: str
    response: str = "response"


def _stem(path: str) -> str:
    return PurePosixPath(path).name.split(".")[0]


def _ident(name: str) -> str:
    """Mermaid-safe identifier for a free-form name."""
    return re.sub(r"\W", "_", name) or "_"


# ============================================================================
# Code analysis
# ============================================================================

def analyze_code_dependencies(code_files: list[CodeFile]) -> list[tuple[str, str]]:
    """Return ``(importer_path, imported_path)`` pairs between known files.

    Only relative JS/TS specifiers and Python modules whose last dotted part
    names one of the sampled files are resolved.
    """
    by_stem = {_stem(f.path): f.path for f in code_files}
    dependencies = []

    for code_file in code_files:
        targets = []
        if code_file.language in ("javascript", "typescript"):
            for pattern in (_JS_IMPORT, _JS_REQUIRE):
                for match in pattern.finditer(code_file.content):
                    specifier = match.group(1)
                    if specifier.startswith(("./", "../")):
                        targets.append(specifier.split("/")[-1].split(".")[0])
        elif code_file.language == "python":
            for match in _PY_IMPORT.finditer(code_file.content):
                module = match.group(1) or match.group(2)
                targets.append(module.rstrip(",").split(".")[-1])

        for target in targets:
            if target in by_stem and by_stem[target] != code_file.path:
                dependencies.append((code_file.path, by_stem[target]))

    return dependencies


def extract_classes(code_files: list[CodeFile]) -> tuple[list[ClassInfo], list[ClassRelation]]:
    classes = []
    relations = []

    for code_file in code_files:
        if code_file.language in ("javascript", "typescript"):
            for match in _JS_CLASS.finditer(code_file.content):
                name, parent, body = match.group(1), match.group(2), match.group(3)
                info = ClassInfo(name)
                for line in body.splitlines():
                    method = _JS_METHOD.match(line)
                    if method and method.group(2) not in JS_KEYWORDS:
                        info.methods.append(ClassMember(method.group(2), VISIBILITY.get(method.group(1), "+")))
                        continue
                    prop = _JS_PROPERTY.match(line)
                    if prop:
                        info.properties.append(
                            ClassMember(prop.group(2), VISIBILITY.get(prop.group(1), "+"), prop.group(3) or "any")
                        )
                classes.append(info)
                if parent:
                    relations.append(ClassRelation(parent, name, "extends"))

        elif code_file.language == "python":
            # Methods are not attributed to a particular class; every class in
            # the file lists every non-dunder def.
            methods = [
                ClassMember(m.group(1))
                for m in _PY_DEF.finditer(code_file.content)
                if not (m.group(1).startswith("__") and m.group(1).endswith("__"))
            ]
            for match in _PY_CLASS.finditer(code_file.content):
                name = match.group(1)
                classes.append(ClassInfo(name, methods=list(methods)))
                for base in (match.group(2) or "").split(","):
                    base = base.strip().split(".")[-1]
                    if re.fullmatch(r"[A-Za-z_]\w*", base) and base != "object":
                        relations.append(ClassRelation(base, name, "inherits"))

    return classes, relations


def extract_interactions(code_files: list[CodeFile]) -> list[Interaction]:
    components = {}
    for code_file in code_files:
        parts = code_file.path.split("/")
        if len(parts) > 1:
            components[parts[-2]] = None
        stem = _stem(code_file.path)
        if stem.endswith(COMPONENT_SUFFIXES):
            components[stem] = None

    interactions = []
    for code_file in code_files:
        caller = _stem(code_file.path)
        if caller not in components:
            continue
        for component in components:
            if component == caller:
                continue
            for match in re.finditer(re.escape(component) + r"\.(\w+)\(", code_file.content):
                interactions.append(Interaction(caller, component, f"{match.group(1)}()"))

    names = list(components)
    if not interactions and len(names) >= 2:
        for caller, callee in zip(names, names[1:]):
            interactions.append(Interaction(caller, callee, "request"))

    return interactions


# ============================================================================
# Renderers
# ============================================================================

def generate_repo_flowchart(owner: str, repo: str, data: RepositoryData) -> str:
    lines = ["flowchart TD", f'    Repo["{owner}/{repo}"]']

    directories = [item["name"] for item in data.contents if item.get("type") == "dir"]
    files = [item["name"] for item in data.contents if item.get("type") == "file"]

    for i, name in enumerate(directories):
        lines.append(f'    Dir{i}["{name}/"]')
        lines.append(f"    Repo --> Dir{i}")

    for i, name in enumerate(files[:MAX_LISTED_FILES]):
        lines.append(f'    File{i}["{name}"]')
        lines.append(f"    Repo --> File{i}")

    if len(files) > MAX_LISTED_FILES:
        lines.append(f'    More["... {len(files) - MAX_LISTED_FILES} more files"]')
        lines.append("    Repo --> More")

    dependencies = analyze_code_dependencies(data.code_files)
    if dependencies:
        ids = {}
        for path in dict.fromkeys(p for pair in dependencies for p in pair):
            ids[path] = f"Code{len(ids)}"
            lines.append(f'    {ids[path]}["{PurePosixPath(path).name}"]')
        for importer, imported in dependencies:
            lines.append(f"    {ids[importer]} -->|imports| {ids[imported]}")

    return "\n".join(lines) + "\n"


def generate_repo_language_pie_chart(owner: str, repo: str, data: RepositoryData) -> str:
    lines = [f"pie title Language Distribution for {owner}/{repo}"]
    total = sum(data.languages.values())

    if total > 0:
        for language, size in data.languages.items():
            lines.append(f'    "{language}" : {size / total * 100:.2f}')
    else:
        lines.append('    "Unknown" : 100')

    return "\n".join(lines) + "\n"


GENERIC_REPO_CLASSES = """    class Repository {
        +String name
        +String owner
        +String description
        +getContents()
        +getLanguages()
    }
    class File {
        +String name
        +String path
        +String content
        +getContent()
    }
    class Directory {
        +String name
        +String path
        +getFiles()
        +getSubdirectories()
    }
    Repository *-- File : contains
    Repository *-- Directory : contains
    Directory *-- File : contains
"""


def generate_repo_class_diagram(owner: str, repo: str, data: RepositoryData) -> str:
    if not data.code_files:
        return "classDiagram\n" + GENERIC_REPO_CLASSES

    classes, relations = extract_classes(data.code_files)
    lines = ["classDiagram"]

    for info in classes:
        lines.append(f"    class {info.name} {{")
        for prop in info.properties:
            lines.append(f"        {prop.visibility}{prop.type} {prop.name}")
        for method in info.methods:
            lines.append(f"        {method.visibility}{method.name}()")
        lines.append("    }")

    for rel in relations:
        lines.append(f"    {rel.parent} <|-- {rel.child} : {rel.label}")

    return "\n".join(lines) + "\n"


def generate_repo_sequence_diagram(owner: str, repo: str, data: RepositoryData) -> str:
    interactions = extract_interactions(data.code_files)

    if not interactions:
        repo_id = _ident(repo)
        return (
            "sequenceDiagram\n"
            "    participant User\n"
            f"    participant {repo_id} as {repo}\n"
            "    participant Database\n"
            f"    User->>+{repo_id}: Request\n"
            f"    {repo_id}->>+Database: Query\n"
            f"    Database-->>-{repo_id}: Results\n"
            f"    {repo_id}-->>-User: Response\n"
        )

    lines = ["sequenceDiagram"]
    participants = dict.fromkeys(n for i in interactions for n in (i.caller, i.callee))
    for name in participants:
        lines.append(f"    participant {_ident(name)}")

    for step in interactions:
        caller, callee = _ident(step.caller), _ident(step.callee)
        lines.append(f"    {caller}->>+{callee}: {step.message}")
        lines.append(f"    {callee}-->>-{caller}: {step.response}")

    return "\n".join(lines) + "\n"


def generate_repo_c4_diagram(owner: str, repo: str, data: RepositoryData) -> str:
    description = (data.info.get("description") or "A software system").replace('"', "'")
    return (
        "C4Context\n"
        f"    title System Context diagram for {repo}\n"
        f'    Enterprise_Boundary(b0, "{owner}") {{\n'
        '      Person(user, "User", "A user of the system")\n'
        f'      System(system, "{repo}", "{description}")\n'
        "    }\n"
        f'    System_Ext(external, "External System", "An external system that {repo} interacts with")\n'
        '    Rel(user, system, "Uses")\n'
        '    Rel(system, external, "Calls API")\n'
    )


REPO_RENDERERS: dict[str, RepoRenderer] = {
    "flowchart": generate_repo_flowchart,
    "classDiagram": generate_repo_class_diagram,
    "c4Diagram": generate_repo_c4_diagram,
    "pieChart": generate_repo_language_pie_chart,
    "sequenceDiagram": generate_repo_sequence_diagram,
}


def generate_diagram_from_github(diagram_type: str, owner: str, repo: str, data: RepositoryData) -> str:
    """Render repository data; unsupported types fall back to the structure flowchart."""
    renderer = REPO_RENDERERS.get(diagram_type, generate_repo_flowchart)
    return renderer(owner, repo, data)
