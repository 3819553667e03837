"""
Execution domain app.

Describes the executions (pipelines and orchestrations) driven by the host
engine and the listener contract the engine calls at execution boundaries:

- Execution: a running pipeline or orchestration instance
- ExecutionType / ExecutionStatus: enumerations shared with the engine
- ExecutionListener: hooks invoked before an execution starts and after it ends
"""
