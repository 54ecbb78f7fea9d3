"""Standard exit codes for parallel-lint.

The values are part of the command-line contract and are relied upon by
build scripts and CI jobs, so they must not change between releases.
"""


class ExitCode:
    """Exit codes returned by the ``parallel-lint`` command.
    
    - 0: Every checked file passed
    - 1: At least one file has a syntax error or its check failed
    - 130: Run interrupted by Ctrl+C (SIGINT)
    - 255: Fatal error before any file was checked (bad argument,
      missing path, unusable checker, invalid configuration)
    """
    
    SUCCESS = 0
    WITH_ERRORS = 1
    
    # Signal-based exits (128 + signal number)
    CANCELLED = 130  # Ctrl+C (SIGINT = 2)
    
    FAILED = 255
    
    @classmethod
    def get_name(cls, code: int) -> str:
        """Get the name of an exit code.
        
        Args:
            code: The exit code value
            
        Returns:
            Human-readable name for the exit code
        """
        names = {
            cls.SUCCESS: "SUCCESS",
            cls.WITH_ERRORS: "WITH_ERRORS",
            cls.CANCELLED: "CANCELLED",
            cls.FAILED: "FAILED",
        }
        return names.get(code, f"UNKNOWN({code})")
    
    @classmethod
    def get_description(cls, code: int) -> str:
        """Get the description of an exit code.
        
        Args:
            code: The exit code value
            
        Returns:
            Human-readable description for the exit code
        """
        descriptions = {
            cls.SUCCESS: "No syntax errors found",
            cls.WITH_ERRORS: "Syntax or process errors found in at least one file",
            cls.CANCELLED: "Run cancelled by user",
            cls.FAILED: "Fatal error, no files were checked",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")
