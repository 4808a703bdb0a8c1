"""
Services Layer

Pure bracket-engine logic that:
- Accepts domain inputs (competitors, brackets, rings)
- Returns domain outputs (brackets, numbers, results)
- Does NOT depend on HTTP request/response objects
- Mutates only the brackets it is handed (bracket_store is the one service that talks to the database)
"""
