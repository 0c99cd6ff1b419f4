"""
Prompt construction for single-file code analysis.

The template asks the model for a bare JSON object; the response parser
still tolerates code fences and missing issue fields.
"""

from textwrap import dedent


ANALYSIS_PROMPT_TEMPLATE = dedent("""
    You are an expert code reviewer. Analyze the following {language} code from file "{filename}" and provide a detailed code review.

    CODE:
    ```{language}
    {code}
    ```

    Please analyze this code and respond ONLY with a valid JSON object in this exact format (no markdown, no backticks, just raw JSON):

    {{
      "summary": "Brief overall analysis of the code quality and main concerns",
      "issues": [
        {{
          "line": <line_number>,
          "severity": "high|medium|low",
          "type": "Security|Performance|Code Quality|Best Practices|Maintainability",
          "message": "Clear description of the issue",
          "suggestion": "Specific recommendation to fix the issue",
          "code_snippet": "The problematic code snippet if applicable"
        }}
      ]
    }}

    Focus on:
    1. Security vulnerabilities (SQL injection, XSS, authentication issues, etc.)
    2. Performance problems (N+1 queries, inefficient algorithms, memory leaks)
    3. Code quality issues (naming conventions, code duplication, complexity)
    4. Best practices violations (error handling, validation, design patterns)
    5. Maintainability concerns (documentation, testability, modularity)

    Severity levels:
    - HIGH: Critical security vulnerabilities, data loss risks, performance bottlenecks
    - MEDIUM: Important issues that should be addressed but aren't critical
    - LOW: Minor improvements, style issues, optional optimizations

    Provide at least 3-10 issues if found. Be thorough but practical.
""").strip()


CONNECTION_CHECK_PROMPT = 'Say "API connection successful"'


def build_analysis_prompt(code: str, language: str, filename: str) -> str:
    """Fill the analysis template. ``code`` is inserted verbatim."""
    # dedent ran before formatting, so multi-line code keeps its own indentation
    return ANALYSIS_PROMPT_TEMPLATE.format(
        language=language,
        filename=filename,
        code=code,
    )
