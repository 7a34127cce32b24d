"""Prompt templates for the per-repository and executive summaries."""

from __future__ import annotations

from collections.abc import Sequence

from commitreport.engines.commit_fetcher.models import Commit, Repository

_GUIDELINES = """\
1. Explain the main changes in non-technical terms
2. Highlight the benefits to the business
3. Use clear and accessible language
4. Keep the focus on results and positive impact"""

REPOSITORY_PROMPT = """\
Analyze the following commits from the repository {name} and write a clear, \
concise report for non-technical managers explaining the main changes and \
improvements that were made:

Commits:
{messages}

Please provide a summary that:
{guidelines}"""

EXECUTIVE_PROMPT = """\
Analyze the following commit reports and write an executive summary in \
markdown highlighting the main changes and improvements made in each \
repository:

{reports}

Please provide a summary that:
{guidelines}
5. Organizes the content into sections with markdown headings
6. Uses lists and emphasis for readability"""


def build_repository_prompt(repo: Repository, commits: Sequence[Commit]) -> str:
    messages = "\n".join(commit.message for commit in commits)
    return REPOSITORY_PROMPT.format(name=repo.name, messages=messages, guidelines=_GUIDELINES)


def build_executive_prompt(reports: Sequence[str]) -> str:
    return EXECUTIVE_PROMPT.format(reports="\n\n".join(reports), guidelines=_GUIDELINES)
