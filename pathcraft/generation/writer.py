from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pathcraft.core.constants import REPORT_FILENAME
from pathcraft.core.logging import log
from pathcraft.generation.artifacts import env
from pathcraft.generation.models import GenerationResult, TestFile
from pathcraft.utils.file_io import safe_write_json, safe_write_text


class TestFileWriter:
    """
    Persists a generation result: every file under ``base_dir``, plus a JSON
    report and a README describing what was generated.
    """
    __test__ = False

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def target(self, file: TestFile) -> Path:
        return self.base_dir / file.path / file.filename

    def write(self, result: GenerationResult, output_directory: Optional[str] = None) -> List[Path]:
        written = []
        for file in result.files:
            destination = self.target(file)
            if safe_write_text(destination, file.content):
                written.append(destination)
            else:
                log(f"Could not write {destination}", level="error", test_file=file.filename)

        root = self.base_dir / (output_directory or self._output_root(result))
        self.write_report(result, root)
        self.write_readme(result, root)
        log(f"Wrote {len(written)} generated files to {root}", files=len(written))
        return written

    def write_report(self, result: GenerationResult, root: Path) -> Path:
        report = {
            "generatedAt": datetime.now().isoformat(),
            "summary": result.summary.model_dump(mode="json"),
            "files": [
                {
                    "filename": f.filename,
                    "path": f.path,
                    "type": f.type,
                    "framework": f.metadata.framework,
                    "language": f.metadata.language,
                }
                for f in result.files
            ],
            "errors": [e.model_dump(mode="json") for e in result.errors],
        }
        path = root / REPORT_FILENAME
        safe_write_json(path, report)
        return path

    def write_readme(self, result: GenerationResult, root: Path) -> Path:
        template = env.get_template("README.md.jinja")
        frameworks = sorted({f.metadata.framework for f in result.files})
        dependencies = sorted({d for f in result.files for d in f.metadata.dependencies})
        content = template.render(
            summary=result.summary,
            files=result.files,
            errors=result.errors,
            frameworks=frameworks,
            dependencies=dependencies,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )
        path = root / "README.md"
        safe_write_text(path, content)
        return path

    @staticmethod
    def _output_root(result: GenerationResult) -> str:
        # Every file path is "<output_directory>/<kind>"
        for f in result.files:
            parent = str(Path(f.path).parent)
            if parent not in ("", "."):
                return parent
        return "."
