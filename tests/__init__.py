"""
LifeQuest Test Suite
====================

Test Organization
-----------------
- tests/unit/          : Fast unit tests, scripted randomness and a frozen clock
- tests/unit/domain/   : Pure domain record tests
- tests/integration/   : Whole-engine runs over the packaged YAML tables

Testing Philosophy
------------------
- Unit tests: fast, isolated, test game rules
- Integration tests: wire real services together through build_engine
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
