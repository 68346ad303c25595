"""Mock responses for testing without API calls."""

# Shape of a Gemini security audit response
MOCK_RESPONSE = """```json
{
  "score": 42,
  "findings": [
    {
      "id": "finding-1",
      "severity": "critical",
      "file": "app/db.py",
      "line": 12,
      "endLine": 12,
      "action": "replace",
      "title": "SQL injection in user lookup",
      "description": "The user id is concatenated into the SQL string.",
      "fix": "    cursor.execute(\\"SELECT * FROM users WHERE id = %s\\", (user_id,))"
    },
    {
      "id": "finding-2",
      "severity": "high",
      "file": "app/settings.py",
      "line": 3,
      "endLine": 3,
      "action": "replace",
      "title": "Hardcoded secret key",
      "description": "SECRET_KEY is committed to the repository.",
      "fix": "SECRET_KEY = os.environ[\\"SECRET_KEY\\"]"
    },
    {
      "id": "finding-3",
      "severity": "low",
      "file": "app/settings.py",
      "line": 8,
      "endLine": 8,
      "action": "delete",
      "title": "Debug toolbar enabled",
      "description": "Remove the debug toolbar from production settings.",
      "fix": ""
    }
  ]
}
```"""
