"""
Architecture Validator - checks generated or edited architectures before they
are shown in the editor.

Catches issues like:
- Empty architectures
- Duplicate node / edge IDs
- Edges pointing at nodes that do not exist
- Blank labels
- Orphaned nodes and self-loops
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from cloudmap.ir.architecture import Architecture


class ValidationSeverity(Enum):
    ERROR = "error"      # Diagram will not render correctly
    WARNING = "warning"  # Diagram renders but has issues
    INFO = "info"        # Suggestions for improvement


@dataclass
class ValidationIssue:
    """A single validation issue found in the architecture"""
    severity: ValidationSeverity
    code: str           # Machine-readable issue code
    message: str        # Human-readable description
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "nodeId": self.node_id,
            "edgeId": self.edge_id,
        }


@dataclass
class ArchitectureValidationResult:
    is_valid: bool
    is_complete: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    def count(self, severity: ValidationSeverity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    @property
    def error_count(self) -> int:
        return self.count(ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self.count(ValidationSeverity.WARNING)

    def codes(self) -> Set[str]:
        return {i.code for i in self.issues}

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "isComplete": self.is_complete,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "infoCount": self.count(ValidationSeverity.INFO),
            "issues": [i.to_dict() for i in self.issues],
            "stats": self.stats,
        }

    def get_summary(self) -> str:
        status = "Valid" if self.is_valid else "Invalid"
        completeness = "Complete" if self.is_complete else "Incomplete"
        return (
            f"{status} | {completeness} | "
            f"Errors: {self.error_count}, Warnings: {self.warning_count}, "
            f"Info: {self.count(ValidationSeverity.INFO)}"
        )


class ArchitectureValidator:

    def validate(self, architecture: Architecture) -> ArchitectureValidationResult:
        issues: List[ValidationIssue] = []
        node_ids = {n.id for n in architecture.nodes}

        issues.extend(self._check_empty(architecture))
        issues.extend(self._check_duplicate_ids(architecture))
        issues.extend(self._check_labels(architecture))
        issues.extend(self._check_edge_references(architecture, node_ids))
        issues.extend(self._check_orphans(architecture, node_ids))
        issues.extend(self._check_self_loops(architecture))

        connected = {e.source for e in architecture.edges} | {e.target for e in architecture.edges}
        stats = {
            "nodes": len(architecture.nodes),
            "edges": len(architecture.edges),
            "services": len(set(architecture.service_names())),
            "orphanedNodes": len(node_ids - connected) if architecture.edges else len(node_ids),
        }

        has_errors = any(i.severity == ValidationSeverity.ERROR for i in issues)
        is_complete = not has_errors and not any(i.code == "ORPHAN_NODE" for i in issues)

        return ArchitectureValidationResult(
            is_valid=not has_errors,
            is_complete=is_complete,
            issues=issues,
            stats=stats,
        )

    def _check_empty(self, architecture: Architecture) -> List[ValidationIssue]:
        issues = []
        if not architecture.nodes:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="EMPTY_ARCHITECTURE",
                message="Architecture has no services",
            ))
        elif not architecture.edges:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.INFO,
                code="NO_EDGES",
                message=f"Architecture has {len(architecture.nodes)} services but no connections",
            ))
        return issues

    def _check_duplicate_ids(self, architecture: Architecture) -> List[ValidationIssue]:
        issues = []

        node_counts: Dict[str, int] = defaultdict(int)
        for node in architecture.nodes:
            node_counts[node.id] += 1
        for node_id, count in node_counts.items():
            if count > 1:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="DUPLICATE_NODE_ID",
                    message=f"Duplicate node ID '{node_id}' appears {count} times",
                    node_id=node_id,
                ))

        edge_counts: Dict[str, int] = defaultdict(int)
        for edge in architecture.edges:
            edge_counts[edge.id] += 1
        for edge_id, count in edge_counts.items():
            if count > 1:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="DUPLICATE_EDGE_ID",
                    message=f"Duplicate edge ID '{edge_id}' appears {count} times",
                    edge_id=edge_id,
                ))
        return issues

    def _check_labels(self, architecture: Architecture) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="EMPTY_LABEL",
                message=f"Node '{node.id}' has an empty label",
                node_id=node.id,
            )
            for node in architecture.nodes
            if not node.data.label.strip()
        ]

    def _check_edge_references(self, architecture: Architecture, node_ids: Set[str]) -> List[ValidationIssue]:
        issues = []
        for edge in architecture.edges:
            for end in (edge.source, edge.target):
                if end not in node_ids:
                    issues.append(ValidationIssue(
                        severity=ValidationSeverity.ERROR,
                        code="DANGLING_EDGE",
                        message=f"Edge '{edge.id}' references non-existent node '{end}'",
                        edge_id=edge.id,
                    ))
        return issues

    def _check_orphans(self, architecture: Architecture, node_ids: Set[str]) -> List[ValidationIssue]:
        if len(architecture.nodes) < 2:
            return []

        connected = {e.source for e in architecture.edges} | {e.target for e in architecture.edges}
        return [
            ValidationIssue(
                severity=ValidationSeverity.WARNING,
                code="ORPHAN_NODE",
                message=f"Service '{node.data.label}' ({node.id}) has no connections",
                node_id=node.id,
            )
            for node in architecture.nodes
            if node.id not in connected
        ]

    def _check_self_loops(self, architecture: Architecture) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                severity=ValidationSeverity.WARNING,
                code="SELF_LOOP",
                message=f"Edge '{edge.id}' connects '{edge.source}' to itself",
                node_id=edge.source,
                edge_id=edge.id,
            )
            for edge in architecture.edges
            if edge.source == edge.target
        ]


def validate_architecture(architecture: Architecture) -> ArchitectureValidationResult:
    return ArchitectureValidator().validate(architecture)
