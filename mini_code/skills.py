"""
SkillLoader - progressive disclosure of on-disk knowledge.

A skill is a FOLDER containing:
    SKILL.md      (required) frontmatter + markdown instructions
    scripts/      (optional) helper scripts the model can run
    references/   (optional) additional documentation
    assets/       (optional) templates, files for output

SKILL.md format:

    ---
    name: pdf
    description: Process PDF files. Use when reading, creating, or merging PDFs.
    ---

    # PDF Processing Skill
    ...

    Layer 1 (cheap):      name + description in the system prompt
    Layer 2 (on demand):  full body, returned as a tool_result
    Layer 3 (hints):      resource file names listed next to the body

The body is delivered as a tool_result, never by editing the system prompt:
appending keeps the prompt prefix stable, so the backend prompt cache keeps
hitting.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

MANIFEST = "SKILL.md"
RESOURCE_FOLDERS = (("scripts", "Scripts"), ("references", "References"), ("assets", "Assets"))

_FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)$", re.DOTALL)


@dataclass(frozen=True)
class Skill:
    name: str
    description: str
    body: str
    path: Path
    directory: Path


def parse_skill_md(path: Path):
    """Parse a SKILL.md. Returns a Skill, or None if the manifest is invalid."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable skill manifest %s: %s", path, e)
        return None
    match = _FRONTMATTER.match(text)
    if not match:
        return None
    frontmatter, body = match.groups()
    meta = {}
    for line in frontmatter.strip().splitlines():
        if ":" in line:
            key, value = line.split(":", 1)
            meta[key.strip()] = value.strip().strip("\"'")
    if not meta.get("name") or not meta.get("description") or not body.strip():
        return None
    return Skill(meta["name"], meta["description"], body.strip(), path, path.parent)


class SkillLoader:
    def __init__(self, skills_dir: Path = None):
        self.skills = {}
        if skills_dir is not None:
            self.load(skills_dir)

    def load(self, skills_dir: Path):
        """Scan immediate subdirectories for SKILL.md. Only metadata matters here."""
        skills_dir = Path(skills_dir)
        if not skills_dir.exists():
            logger.debug("No skills directory at %s", skills_dir)
            return
        if not skills_dir.is_dir():
            raise ConfigError(f"Skills path is not a directory: {skills_dir}")
        try:
            entries = sorted(skills_dir.iterdir())
        except OSError as e:
            raise ConfigError(f"Cannot read skills directory {skills_dir}: {e}") from e

        for entry in entries:
            manifest = entry / MANIFEST
            if not entry.is_dir() or not manifest.is_file():
                continue
            skill = parse_skill_md(manifest)
            if skill is None:
                logger.debug("Skipping invalid skill manifest %s", manifest)
                continue
            if skill.name in self.skills:
                logger.warning("Duplicate skill name '%s' in %s, keeping the first", skill.name, entry)
                continue
            self.skills[skill.name] = skill
        logger.debug("Loaded %d skills from %s", len(self.skills), skills_dir)

    def descriptions(self) -> str:
        if not self.skills:
            return "(no skills available)"
        return "\n".join(f"- {s.name}: {s.description}" for s in self.skills.values())

    def resolve(self, name: str):
        """Full body plus resource hints, or None if the skill is unknown."""
        skill = self.skills.get(name)
        if skill is None:
            return None
        content = f"# Skill: {skill.name}\n\n{skill.body}"
        resources = []
        for folder, label in RESOURCE_FOLDERS:
            folder_path = skill.directory / folder
            if folder_path.is_dir():
                files = sorted(f.name for f in folder_path.iterdir())
                if files:
                    resources.append(f"{label}: {', '.join(files)}")
        if resources:
            content += f"\n\n**Available resources in {skill.directory}:**\n"
            content += "\n".join(f"- {r}" for r in resources)
        return content

    def list_skills(self) -> list:
        return list(self.skills)


def run_skill(loader: SkillLoader, name: str) -> str:
    content = loader.resolve(name)
    if content is None:
        available = ", ".join(loader.list_skills()) or "none"
        return f"Error: Unknown skill '{name}'. Available: {available}"
    return (
        f'<skill-loaded name="{name}">\n{content}\n</skill-loaded>\n\n'
        "Follow the instructions in the skill above to complete the user's task."
    )
