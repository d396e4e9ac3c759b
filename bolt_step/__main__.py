from bolt_step.runner import run

run()
