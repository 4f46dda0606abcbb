# legitify

A library for turning the results of security-posture policy checks on
source-control organizations and repositories into reports.

It takes analyzed policy results, enriches them with extra details, collects
them into a report scheme and renders that report as human-readable text,
Markdown, JSON, SARIF 2.1.0 or CSV.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `legitify.enricher` – the data model and the enrichment step.
  `AnalyzedData` is one policy evaluated against one entity; `EnrichedData` is
  the same result with its enrichments. `Severity`, `Namespace` and
  `PolicyStatus` are string enums, and `severity_less(a, b)` orders more severe
  first. `EnricherManager().enrich(analyzed, context=None)` is a generator that
  yields an `EnrichedData` for each input item, running the enrichers named in
  `required_enrichers` plus the defaults (`entityId`, `entityName`). Unknown
  enricher names are logged and skipped. `EnricherManager().parse(name, data)`
  rebuilds a stored enrichment and raises `ValueError` for an unknown name.
- `legitify.enrichers` – the enrichments (`BasicEnrichment`,
  `GenericListEnrichment`, `MembersListEnrichment`, `ScorecardEnrichment`) and
  their enrichers (`EntityIdEnricher`, `EntityNameEnricher`,
  `HooksListEnricher`, `SecretsListEnricher`, `MembersListEnricher`,
  `ScorecardEnricher`, and the general `BasicEnricher`). Each enrichment has
  `human_readable(prepend, linebreak)` and `to_json_obj()`. The scorecard
  enricher is active only when the context mapping has `scorecard_verbose` set.
- `legitify.scheme` – `Flattened` maps fully qualified policy names to
  `OutputData` (a `PolicyInfo` plus a list of `Violation`). It can be sorted
  (`sorted_by_severity`, `sorted_by_namespace`, `sorted(key)`), filtered
  (`only_failed_violations`, `filtered_by_status`, `filter_by_violation`) and
  written to and read from JSON (`to_json_obj`, `Flattened.from_json_obj`).
  `ByNamespace`, `ByResource` and `BySeverity` group flattened schemes by a key.
  `to_typed(scheme_type, scheme)` wraps a scheme as `{"type": ..., "content": ...}`
  and `unmarshal(data)` reads such a document back; only the flattened scheme
  can be read back, anything else raises `ValueError`.
- `legitify.converter` – `convert(scheme_type, output)` regroups a `Flattened`
  scheme by namespace, resource (canonical link) or severity, or returns it
  unchanged for the flattened type. `validate_output_scheme(scheme_type)`
  raises `ValueError` for an unknown type.
- `legitify.formatting` – shared pieces of the text formats: theme colors,
  indentation helpers, `PoliciesContent` (policy descriptions and violations)
  and `TableContent` (the findings summary table).
- `legitify.human_formatter`, `legitify.markdown_formatter`,
  `legitify.json_formatter`, `legitify.sarif_formatter`,
  `legitify.csv_formatter` – one formatter class each, with
  `format(scheme, failed_only)` returning the report text.
- `legitify.output_format` – `FormatName`, `output_formats()`,
  `format_output(output_format, scheme, failed_only)` and
  `validate_output_format(output_format, scheme_type)`.
- `legitify.outputer` – `Outputer(output_format, scheme_type, failed_only=False)`.
  `digest(items)` collects enriched data, sorts it by severity (and each
  policy's violations by link), drops non-failed violations when `failed_only`
  is set, converts to the scheme, formats, and returns the text; `output(writer)`
  writes the last rendered report.
- `legitify.errlog` – `ErrorLog` records error messages (`printf`), missing
  permissions (`PermIssue`, `new_perm_issue`) and skipped policies
  (`SkipReason.prerequisite`, `SkipReason.permission`), and `flush_all()` writes
  them as indented JSON to the permissions output.
- `legitify.version` – `readable_version()` and `readable_version_lean()`.

## Example

```python
import io
from dataclasses import dataclass

from legitify.enricher import AnalyzedData, EnricherManager, Namespace, PolicyStatus, Severity
from legitify.output_format import FormatName
from legitify.outputer import Outputer
from legitify.scheme import SchemeType


@dataclass
class Repo:
    id: int
    name: str
    violation_entity_type: str = "repository"


analyzed = [
    AnalyzedData(
        entity=Repo(1, "demo"),
        namespace=Namespace.REPOSITORY,
        policy_name="branch_protection",
        fully_qualified_policy_name="data.repository.branch_protection",
        title="Branch protection is not enabled",
        description="The default branch has no protection rules.",
        remediation_steps=["Enable branch protection"],
        severity=Severity.HIGH,
        canonical_link="https://example.com/org/demo",
        status=PolicyStatus.FAILED,
    )
]

enriched = list(EnricherManager().enrich(analyzed))

outputer = Outputer(FormatName.MARKDOWN, SchemeType.FLATTENED)
outputer.digest(enriched)

buffer = io.StringIO()
outputer.output(buffer)
print(buffer.getvalue())
```

Entities are duck-typed: the default enrichers read `id` and `name`, and the
outputer reads `violation_entity_type`.

## Output formats

| Name       | Schemes it can render                      |
|------------|--------------------------------------------|
| `human`    | flattened                                  |
| `markdown` | flattened                                  |
| `csv`      | flattened                                  |
| `sarif`    | flattened                                  |
| `json`     | all (flattened and the three grouped ones) |

`validate_output_format` raises `ValueError` for an unknown format or for a
scheme type the format reports as unsupported. The SARIF formatter reports
every scheme type as supported, but its `format` raises
`UnsupportedSchemeError` for anything other than a `Flattened` scheme, as do
the human, Markdown and CSV formatters.

The human format uses ANSI colors only when standard output is a terminal and
`NO_COLOR` is not set; pass `HumanColorizer(enabled=...)` to
`HumanFormatter` to choose explicitly.

## What this package does not do

This is a library for the reporting half of a posture scan. It does not
connect to any source-control service or collect data from one, it does not
evaluate policies (the `AnalyzedData` items must come from your own policy
evaluation), it does not compute scorecard results itself (the scorecard
enricher only reads results already attached to an entity), and it provides
no command-line program.